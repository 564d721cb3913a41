# hostcert/commands/ensure/register.py

from __future__ import annotations

import argparse

from .actions import handle_ensure
from hostcert.commands.helpers import add_identity_arguments


def register(subparsers: argparse._SubParsersAction) -> None:
    """
    Register the `ensure` command.
    """
    parser = subparsers.add_parser(
        'ensure',
        help='Generate any missing key, CSR, certificate and bundle',
    )

    add_identity_arguments(parser)

    parser.add_argument("-j", "--jobs",
        type=int,
        default=1,
        help="Identities to process in parallel (with --all)")

    parser.set_defaults(handler=handle_ensure)
