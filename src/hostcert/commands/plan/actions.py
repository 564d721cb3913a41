# hostcert/commands/plan/actions.py

from __future__ import annotations

import logging

from hostcert.commands.ensure.actions import run_jobs
from hostcert.models import App
from hostcert.utils.formatting import title

log = logging.getLogger(__name__)


def handle_plan(app: App) -> int:
    title("Plan host certificates", level=2)

    return run_jobs(app, app.jobs(), dry_run=True)
