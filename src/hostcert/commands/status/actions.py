# hostcert/commands/status/actions.py

from __future__ import annotations

import logging

from hostcert.constants import EXIT_OK
from hostcert.models import App
from hostcert.reports.run_report import status_report
from hostcert.services.planner import plan, probe

log = logging.getLogger(__name__)


def handle_status(app: App) -> int:
    for job in app.jobs():
        artifacts = plan(job.identity, job.settings)
        status_report(job.identity.common_name, artifacts, probe(artifacts))

    return EXIT_OK
