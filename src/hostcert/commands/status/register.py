# hostcert/commands/status/register.py

from __future__ import annotations

import argparse

from .actions import handle_status
from hostcert.commands.helpers import add_identity_arguments


def register(subparsers: argparse._SubParsersAction) -> None:
    """
    Register the `status` command.
    """
    parser = subparsers.add_parser(
        'status',
        help='Show whether each artifact is present',
    )

    add_identity_arguments(parser)

    parser.set_defaults(handler=handle_status)
