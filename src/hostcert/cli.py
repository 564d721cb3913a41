#!/usr/bin/env python3
"""
#
# hostcert - Host Certificate Lifecycle Engine
#

Keeps a host's private key, certificate signing request, self-signed
certificate and key/certificate bundle in place, generating only what is
missing or stale.

Requirements:
  - Python 3.9+
  - openssl on PATH
  - Pydantic, Jinja2, PyYAML

"""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Callable

from hostcert import __version__, __title__, __short_title__
from .constants import EXIT_FATAL, EXIT_VALIDATION_ERROR
from .commands import register_all
from .models.app import App
from .utils.formatting import title, error

from .services.errors import CertError, ConfigError, ValidationError


def build_parser(prog_desc: str) -> argparse.ArgumentParser:
    """ Build the command line argument parser """

    parser = argparse.ArgumentParser(
        prog="hostcert",
        description=prog_desc,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("-c", "--config",
        required=False,
        help="YAML configuration file with defaults and certificate entries"
    )

    parser.add_argument("--log-level",
        default="WARNING",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Set logging verbosity",
    )

    parser.add_argument("--version",
        action="version",
        version=f"{__title__} {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command", required=True)

    register_all(subparsers)

    return parser

# ---------------------
# Entry point
# ---------------------

def main(argv: Optional[list[str]] = None) -> int:

    description: str = f'{__title__} - {__short_title__} v{__version__}'

    parser: argparse.ArgumentParser = build_parser(description)
    args: argparse.Namespace = parser.parse_args(argv)
    handler: Optional[Callable[[App], int]] = getattr(args, "handler", None)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    title(description, 1)

    if handler is None:
        logging.error("Unknown command: %s", getattr(args, "command", None))
        return EXIT_FATAL

    try:
        app: App = App.from_args(args=args)

        return handler(app)

    except (ValidationError, ConfigError) as e:
        # Bad identity or configuration; nothing was touched
        error(str(e))
        return EXIT_VALIDATION_ERROR
    except CertError as e:
        error(str(e))
        return EXIT_FATAL
    except SystemExit:
        raise
    except Exception:
        logging.exception("Unexpected error")
        return EXIT_FATAL

if __name__ == "__main__":
    raise SystemExit(main())
