# hostcert/constants.py

from __future__ import annotations

"""
Standardised exit codes for hostcert CLI commands.

0 = success
1 = validation errors (bad identity or configuration)
2 = fatal errors (tool failures, IO problems, unhandled exceptions)
"""
EXIT_OK: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_FATAL: int = 2

# ---- ANSI Colour Codes ----
COLOUR = {
    'black': '\033[30m',
    'red': '\033[31m',
    'green': '\033[32m',
    'yellow': '\033[33m',
    'blue': '\033[34m',
    'magenta': '\033[35m',
    'cyan': '\033[36m',
    'white': '\033[37m',
    'bold_red': '\033[1;31m',
    'bold_green': '\033[1;32m',
    'bold_yellow': '\033[1;33m',
    'bold_white': '\033[1;37m',
    'underline_white': '\033[4;37m',
    'bright_white': '\033[97m',
    'reset': '\033[0m'
}

# Convenience shortcuts
COLOUR_ERROR = COLOUR['bold_red']
COLOUR_OK = COLOUR['green']
COLOUR_BRIGHT = COLOUR['bold_white']
COLOUR_WARNING = COLOUR['bold_yellow']
COLOUR_RESET = COLOUR['reset']

# ---- Crypto tool defaults ----
OPENSSL_BIN = 'openssl'

# ---- Global settings layer ----
# Lowest-priority layer of the settings resolver. A config file's `defaults:`
# section and per-certificate values are stacked on top of this.
DEFAULT_SETTINGS = {
    'key_dir': '/etc/ssl/private',
    'cert_dir': '/etc/ssl/certs',
    'bundle_dir': '/etc/ssl/private',
    'key_size': 2048,
    'days': 365,
    'digest': 'sha256',
    'owner': 'root',
    'group': 'root',
    'key_mode': 0o600,
    'openssl_bin': OPENSSL_BIN,
    'command_timeout': 120.0,
    'lock_timeout': 30.0,
    'country': None,
    'state': None,
    'city': None,
    'org': None,
    'org_unit': None,
}

# ---- Artifact layout ----
META_DIR = 'meta'

ARTIFACT_SUFFIX = {
    'key': '.key',
    'config': '.cnf',
    'csr': '.csr',
    'csr_text': '.csr.txt',
    'cert': '.crt',
    'bundle': '.pem',
}

CERT_FILE_MODE = 0o644
KEY_DIR_MODE = 0o700

# ---- View defaults ----
STATUS_COLUMN  = 90
