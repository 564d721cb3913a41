# hostcert/commands/ensure/actions.py

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

from hostcert.constants import EXIT_FATAL, EXIT_OK
from hostcert.models import App
from hostcert.models.app import Job
from hostcert.reports.run_report import run_report
from hostcert.services.errors import CertError
from hostcert.services.executor import ExecutionReport
from hostcert.utils.formatting import title, warning

log = logging.getLogger(__name__)


def run_job(app: App, job: Job, *, dry_run: bool = False) -> ExecutionReport:
    """
    Run one identity. Failures stay inside that identity's report so other
    identities in the same invocation are unaffected.
    """
    try:
        return app.executor(job.settings).execute(job.identity, dry_run=dry_run)
    except CertError as e:
        log.error("%s: %s", job.identity.common_name, e)
        return ExecutionReport(common_name=job.identity.common_name, dry_run=dry_run, error=e)


def run_jobs(app: App, jobs: List[Job], *, dry_run: bool = False, workers: int = 1) -> int:
    """ Run all jobs, render their reports, and fold them into one exit code """
    if not jobs:
        warning("No certificates selected.")
        return EXIT_OK

    if workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            reports = list(pool.map(lambda job: run_job(app, job, dry_run=dry_run), jobs))
    else:
        reports = [run_job(app, job, dry_run=dry_run) for job in jobs]

    exit_code = EXIT_OK
    for report in reports:
        if run_report(report) != EXIT_OK:
            exit_code = EXIT_FATAL

    return exit_code


def handle_ensure(app: App) -> int:
    title("Ensure host certificates", level=2)

    jobs = app.jobs()

    return run_jobs(app, jobs, workers=max(1, app.args.jobs))
