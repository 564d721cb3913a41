# hostcert/services/errors.py

from __future__ import annotations

from typing import Optional, Sequence


class CertError(Exception):
    """Base class for host certificate engine errors."""


class ConfigError(CertError):
    """Raised when the configuration file or a settings layer is malformed."""


class ValidationError(CertError):
    """Raised when a certificate identity fails input validation."""


class InvalidFormatError(ValidationError):
    """A subject field (country, state, city, org, ou, alt names) is malformed."""


class InvalidHostnameError(ValidationError):
    """The common name is not a valid DNS hostname."""


class GraphError(CertError):
    """Raised when the change graph is malformed (cycle, unknown step)."""


class PreconditionError(CertError):
    """Raised when an operation is attempted without the artifacts it needs."""


class ExecutionError(CertError):
    """Raised when an external tool invocation fails or times out."""

    def __init__(
            self,
            message: str,
            *,
            command: Optional[Sequence[str]] = None,
            returncode: Optional[int] = None,
            stderr: str = "",
        ):
        super().__init__(message)
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        msg = super().__str__()
        if self.returncode is not None:
            msg = f"{msg} (exit status {self.returncode})"
        if self.stderr:
            msg = f"{msg}: {self.stderr.strip()}"
        return msg


class ToolNotFoundError(ExecutionError):
    """The crypto tool binary is not installed or not executable."""


class FilesystemError(CertError):
    """Permission denied, disk full or similar. Fatal for the current run."""


class LockError(FilesystemError):
    """The per-identity lock could not be acquired in time."""
