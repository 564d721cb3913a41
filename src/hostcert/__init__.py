# hostcert/__init__.py

"""
hostcert - Host Certificate Lifecycle Engine
============================================

This module keeps a host's private key, certificate signing request,
self-signed certificate and combined bundle in place by driving the
openssl command line tool through an idempotent dependency graph.
"""

# ---- Package metadata ----
__version__ = "0.4.0"
__title__ = "Host Certificate Lifecycle Engine"
__short_title__ = "hostcert"
__author__ = "Alex Ferrara <alex@wiredsquare.com>"
__license__ = "MIT"


# ---- Public exports ----
__all__ = [
    "__version__",
    "__title__",
    "__short_title__",
    "__author__",
    "__license__",
]
