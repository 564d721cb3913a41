# hostcert/commands/__init__.py

from __future__ import annotations

import argparse

from . import ensure, plan, status

def register_all(subparsers: argparse._SubParsersAction) -> None:
    """
    Register all subcommands here
    """
    ensure.register(subparsers)
    plan.register(subparsers)
    status.register(subparsers)
