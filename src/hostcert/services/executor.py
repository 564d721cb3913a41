# hostcert/services/executor.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Set

from hostcert.constants import CERT_FILE_MODE, KEY_DIR_MODE
from hostcert.models.identity import CertificateIdentity
from hostcert.models.settings import Settings
from hostcert.services.errors import CertError, ExecutionError, FilesystemError, PreconditionError
from hostcert.services.graph import ChangeGraph, Step, default_graph
from hostcert.services.planner import Artifact, ArtifactSet, ArtifactState, plan, probe
from hostcert.services.template import ConfigRenderer
from hostcert.utils.files import (
    atomic_output,
    ensure_dir,
    file_lock,
    read_bytes,
    read_bytes_if_exists,
    set_permissions,
    write_bytes,
)

log = logging.getLogger(__name__)


class CryptoTool(Protocol):
    def generate_key(self, out: Path, key_size: int) -> None: ...
    def generate_csr(self, config: Path, key: Path, out: Path) -> None: ...
    def self_sign(self, config: Path, key: Path, out: Path, days: int) -> None: ...
    def csr_text(self, csr: Path, out: Path) -> None: ...


Renderer = Callable[[CertificateIdentity, Settings], str]


class StepStatus(str, Enum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"
    ABORTED = "aborted"
    PLANNED = "planned"


@dataclass(frozen=True)
class StepResult:
    step: Step
    status: StepStatus
    detail: str = ""


@dataclass
class ExecutionReport:
    """
    Outcome of one pass over the change graph for one identity.

    Results are kept in execution order so a failed run shows exactly where
    it stopped; re-running resumes from the first step that is not done.
    """
    common_name: str
    artifacts: Optional[ArtifactSet] = None
    dry_run: bool = False
    results: List[StepResult] = field(default_factory=list)
    error: Optional[CertError] = None

    def add(self, step: Step, status: StepStatus, detail: str = "") -> StepResult:
        result = StepResult(step=step, status=status, detail=detail)
        self.results.append(result)
        log.info("%s %s: %s %s", self.common_name, step.value, status.value, detail)
        return result

    def status_of(self, step: Step) -> Optional[StepStatus]:
        for result in self.results:
            if result.step == step:
                return result.status
        return None

    def _steps_with(self, *statuses: StepStatus) -> List[Step]:
        return [r.step for r in self.results if r.status in statuses]

    @property
    def invoked(self) -> List[Step]:
        """ Steps whose operation actually ran, in order """
        return self._steps_with(StepStatus.CHANGED, StepStatus.UNCHANGED)

    @property
    def changed(self) -> List[Step]:
        return self._steps_with(StepStatus.CHANGED)

    @property
    def skipped(self) -> List[Step]:
        return self._steps_with(StepStatus.SKIPPED)

    @property
    def failed(self) -> List[Step]:
        return self._steps_with(StepStatus.FAILED)

    @property
    def aborted(self) -> List[Step]:
        return self._steps_with(StepStatus.ABORTED)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed and not self.aborted


class Executor:
    """
    Runs the change graph for an identity against the filesystem.

    Every file the engine produces is written to a temp path and renamed into
    place, so an interrupted run never leaves a partial artifact that a later
    probe would mistake for a present one.
    """
    def __init__(
            self,
            tool: CryptoTool,
            settings: Settings,
            renderer: Optional[Renderer] = None,
            graph: Optional[ChangeGraph] = None,
        ):
        self.tool = tool
        self.settings = settings
        self.renderer = renderer or ConfigRenderer()
        self.graph = graph or default_graph()

        self._operations: Dict[Step, Callable[[CertificateIdentity, ArtifactSet], bool]] = {
            Step.GENERATE_KEY: self._generate_key,
            Step.KEY_PERMISSIONS: self._key_permissions,
            Step.RENDER_CONFIG: self._render_config,
            Step.GENERATE_CSR: self._generate_csr,
            Step.GENERATE_CSR_TEXT: self._generate_csr_text,
            Step.SELF_SIGN: self._self_sign,
            Step.COMBINE_BUNDLE: self._combine_bundle,
            Step.BUNDLE_PERMISSIONS: self._bundle_permissions,
        }

    # -------------------------
    # Public API
    # -------------------------

    def execute(self, identity: CertificateIdentity, *, dry_run: bool = False) -> ExecutionReport:
        """
        Bring the artifacts of `identity` up to date.

        Args:
            identity: Validated certificate identity.
            dry_run: Only report what would run; touch nothing.

        Returns:
            ExecutionReport
        """
        artifacts = plan(identity, self.settings)
        report = ExecutionReport(common_name=identity.common_name, artifacts=artifacts, dry_run=dry_run)

        log.debug("Ensuring %s (dry_run=%s)", identity.subject, dry_run)

        if dry_run:
            self._walk(identity, artifacts, report)
            return report

        try:
            self._prepare_dirs(artifacts)

            with file_lock(artifacts.lock, timeout=self.settings.lock_timeout):
                self._walk(identity, artifacts, report)

        except FilesystemError as e:
            log.error("%s: %s", identity.common_name, e)
            report.error = e
            done = {r.step for r in report.results}
            for step in self.graph.order():
                if step not in done:
                    report.add(step, StepStatus.ABORTED, "run aborted")

        return report

    def status(self, identity: CertificateIdentity) -> Mapping[Artifact, ArtifactState]:
        """ Probe the artifacts of `identity` without running anything """
        return probe(plan(identity, self.settings))

    # -------------------------
    # Graph walk
    # -------------------------

    def _walk(self, identity: CertificateIdentity, artifacts: ArtifactSet, report: ExecutionReport) -> None:
        state = probe(artifacts)
        changed: Set[Step] = set()
        blocked: Set[Step] = set()

        for step in self.graph.order():
            if step in blocked:
                report.add(step, StepStatus.ABORTED, "upstream step failed")
                continue

            run, reason = self.graph.decide(step, state, changed)

            if not run:
                report.add(step, StepStatus.SKIPPED, reason)
                continue

            if report.dry_run:
                if self._would_change(step, identity, artifacts, report):
                    changed.add(step)
                continue

            try:
                did_change = self._operations[step](identity, artifacts)
            except FilesystemError as e:
                report.add(step, StepStatus.FAILED, str(e))
                raise
            except CertError as e:
                report.add(step, StepStatus.FAILED, str(e))
                blocked |= self.graph.dependents(step)
                continue

            if did_change:
                changed.add(step)
                report.add(step, StepStatus.CHANGED, reason)
            else:
                report.add(step, StepStatus.UNCHANGED, reason)

    def _would_change(
            self,
            step: Step,
            identity: CertificateIdentity,
            artifacts: ArtifactSet,
            report: ExecutionReport,
        ) -> bool:
        if step != Step.RENDER_CONFIG:
            report.add(step, StepStatus.PLANNED)
            return True

        try:
            content = self.renderer(identity, self.settings).encode("utf-8")
            current = read_bytes_if_exists(artifacts.config)
        except CertError as e:
            report.add(step, StepStatus.FAILED, str(e))
            return False

        if current == content:
            report.add(step, StepStatus.UNCHANGED, "content unchanged")
            return False

        report.add(step, StepStatus.PLANNED, "content differs")
        return True

    def _prepare_dirs(self, artifacts: ArtifactSet) -> None:
        ensure_dir(artifacts.key.parent, KEY_DIR_MODE)
        ensure_dir(artifacts.cert.parent)
        ensure_dir(artifacts.meta_dir)
        ensure_dir(artifacts.bundle.parent, KEY_DIR_MODE)

    # -------------------------
    # Operations
    # -------------------------

    def _generate_key(self, identity: CertificateIdentity, artifacts: ArtifactSet) -> bool:
        with atomic_output(artifacts.key, mode=self.settings.key_mode) as tmp:
            self.tool.generate_key(tmp, self.settings.key_size)
            _require_output(tmp, "key")
        return True

    def _key_permissions(self, identity: CertificateIdentity, artifacts: ArtifactSet) -> bool:
        _require(artifacts.key)
        return set_permissions(artifacts.key, self.settings.key_mode,
                               self.settings.owner, self.settings.group)

    def _render_config(self, identity: CertificateIdentity, artifacts: ArtifactSet) -> bool:
        content = self.renderer(identity, self.settings).encode("utf-8")

        if read_bytes_if_exists(artifacts.config) == content:
            return False

        write_bytes(artifacts.config, content, overwrite=True, mode=CERT_FILE_MODE)
        return True

    def _generate_csr(self, identity: CertificateIdentity, artifacts: ArtifactSet) -> bool:
        _require(artifacts.key, artifacts.config)
        with atomic_output(artifacts.csr, mode=CERT_FILE_MODE) as tmp:
            self.tool.generate_csr(artifacts.config, artifacts.key, tmp)
            _require_output(tmp, "CSR")
        return True

    def _generate_csr_text(self, identity: CertificateIdentity, artifacts: ArtifactSet) -> bool:
        _require(artifacts.csr)
        with atomic_output(artifacts.csr_text, mode=CERT_FILE_MODE) as tmp:
            self.tool.csr_text(artifacts.csr, tmp)
            _require_output(tmp, "CSR text")
        return True

    def _self_sign(self, identity: CertificateIdentity, artifacts: ArtifactSet) -> bool:
        _require(artifacts.key, artifacts.config)
        with atomic_output(artifacts.cert, mode=CERT_FILE_MODE) as tmp:
            self.tool.self_sign(artifacts.config, artifacts.key, tmp, self.settings.days)
            _require_output(tmp, "certificate")
        return True

    def _combine_bundle(self, identity: CertificateIdentity, artifacts: ArtifactSet) -> bool:
        _require(artifacts.key, artifacts.cert)

        key_pem = read_bytes(artifacts.key)
        if not key_pem.endswith(b"\n"):
            key_pem += b"\n"

        write_bytes(artifacts.bundle, key_pem + read_bytes(artifacts.cert), mode=self.settings.key_mode)
        return True

    def _bundle_permissions(self, identity: CertificateIdentity, artifacts: ArtifactSet) -> bool:
        _require(artifacts.bundle)
        return set_permissions(artifacts.bundle, self.settings.key_mode,
                               self.settings.owner, self.settings.group)


def _require(*paths: Path) -> None:
    missing = [str(p) for p in paths if not p.is_file()]
    if missing:
        raise PreconditionError(f"Required artifact missing: {', '.join(missing)}")


def _require_output(path: Path, what: str) -> None:
    if not path.exists() or path.stat().st_size == 0:
        raise ExecutionError(f"openssl exited cleanly but wrote no {what}")
