# hostcert/services/planner.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, Tuple

from hostcert.constants import ARTIFACT_SUFFIX, META_DIR
from hostcert.models.identity import CertificateIdentity
from hostcert.models.settings import Settings

log = logging.getLogger(__name__)


class Artifact(str, Enum):
    KEY = "key"
    CONFIG = "config"
    CSR = "csr"
    CSR_TEXT = "csr_text"
    CERT = "cert"
    BUNDLE = "bundle"


class ArtifactState(str, Enum):
    ABSENT = "absent"
    PRESENT = "present"


@dataclass(frozen=True)
class ArtifactSet:
    """ Every path the engine owns for one identity """
    key: Path
    config: Path
    csr: Path
    csr_text: Path
    cert: Path
    bundle: Path
    lock: Path

    def path(self, artifact: Artifact) -> Path:
        return getattr(self, artifact.value)

    def __iter__(self) -> Iterator[Tuple[Artifact, Path]]:
        for artifact in Artifact:
            yield artifact, self.path(artifact)

    @property
    def meta_dir(self) -> Path:
        return self.config.parent


def _file_name(common_name: str) -> str:
    # a trailing dot is legal in a hostname but not wanted in a file name
    return common_name.rstrip(".").lower()


def plan(identity: CertificateIdentity, settings: Settings) -> ArtifactSet:
    """
    Derive the artifact paths for an identity.

    Pure and deterministic: the same identity and settings always give the
    same ArtifactSet.
    """
    name = _file_name(identity.common_name)
    meta = settings.cert_dir / META_DIR

    return ArtifactSet(
        key=settings.key_dir / f"{name}{ARTIFACT_SUFFIX['key']}",
        config=meta / f"{name}{ARTIFACT_SUFFIX['config']}",
        csr=meta / f"{name}{ARTIFACT_SUFFIX['csr']}",
        csr_text=meta / f"{name}{ARTIFACT_SUFFIX['csr_text']}",
        cert=settings.cert_dir / f"{name}{ARTIFACT_SUFFIX['cert']}",
        bundle=settings.bundle_dir / f"{name}{ARTIFACT_SUFFIX['bundle']}",
        lock=meta / f".{name}.lock",
    )


def probe(artifacts: ArtifactSet) -> Dict[Artifact, ArtifactState]:
    """ Existence check for every artifact. Content is never inspected. """
    state = {
        artifact: ArtifactState.PRESENT if path.is_file() else ArtifactState.ABSENT
        for artifact, path in artifacts
    }

    log.debug("Probed %s: %s", artifacts.key.stem,
              ", ".join(f"{a.value}={s.value}" for a, s in state.items()))

    return state
