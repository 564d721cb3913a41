# hostcert/reports/run_report.py

from __future__ import annotations

import logging
from typing import Mapping

from hostcert.constants import COLOUR, COLOUR_RESET, EXIT_FATAL, EXIT_OK
from hostcert.services.executor import ExecutionReport, StepStatus
from hostcert.services.planner import Artifact, ArtifactSet, ArtifactState
from hostcert.utils.formatting import error, print_result, print_status, title

log = logging.getLogger(__name__)

STATUS_COLOURS = {
    StepStatus.CHANGED:   COLOUR['bold_green'],
    StepStatus.UNCHANGED: COLOUR['green'],
    StepStatus.SKIPPED:   COLOUR['white'],
    StepStatus.PLANNED:   COLOUR['cyan'],
    StepStatus.FAILED:    COLOUR['bold_red'],
    StepStatus.ABORTED:   COLOUR['yellow'],
}


def run_report(report: ExecutionReport) -> int:
    """
    Render the per-step outcome of one run.
    No dependency on `App`.
    """
    label = "Plan" if report.dry_run else "Run"
    title(f"{label} for {report.common_name}", level=2)

    row_format = "  {:<22} {}"

    for result in report.results:
        print(row_format.format(result.step.value, result.detail), end='')
        print_status(f"{result.status.value:^9}", STATUS_COLOURS[result.status])

    if report.error is not None:
        error(str(report.error))

    print()
    print_result(report.ok)

    return EXIT_OK if report.ok else EXIT_FATAL


def status_report(common_name: str, artifacts: ArtifactSet, state: Mapping[Artifact, ArtifactState]) -> int:
    """
    Render the probed state of every artifact for one identity.
    """
    title(f"Artifacts for {common_name}", level=2)

    row_format = "{:<10} {:<9} {}"

    print(row_format.format("artifact", "state", "path"))
    print("-" * 80)

    for artifact, path in artifacts:
        present = state[artifact] == ArtifactState.PRESENT
        colour = COLOUR['green'] if present else COLOUR['yellow']
        print(colour + row_format.format(artifact.value, state[artifact].value, str(path)) + COLOUR_RESET)

    print()

    return EXIT_OK
