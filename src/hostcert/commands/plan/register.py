# hostcert/commands/plan/register.py

from __future__ import annotations

import argparse

from .actions import handle_plan
from hostcert.commands.helpers import add_identity_arguments


def register(subparsers: argparse._SubParsersAction) -> None:
    """
    Register the `plan` command.
    """
    parser = subparsers.add_parser(
        'plan',
        help='Show which steps `ensure` would run, without changing anything',
    )

    add_identity_arguments(parser)

    parser.set_defaults(handler=handle_plan)
