# hostcert/services/openssl.py

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from hostcert.constants import OPENSSL_BIN
from hostcert.services.errors import ExecutionError, ToolNotFoundError

log = logging.getLogger(__name__)


class Openssl:
    """ Thin class to act on the openssl CLI """
    def __init__(
            self,
            binary: str = OPENSSL_BIN,
            timeout: float = 120.0,
            digest: str = "sha256",
        ):
        self.timeout = timeout
        self.digest = digest

        if (os.path.isabs(binary) and os.path.isfile(binary) and os.access(binary, os.X_OK)):
            resolved = binary
        else:
            resolved = shutil.which(binary)

        if not resolved:
            raise ToolNotFoundError(f"openssl binary not found: {binary!r}. Ensure it's installed and on PATH.")

        self.bin = resolved

    def _checked(self, args: list[str]) -> subprocess.CompletedProcess:
        """ Run openssl and raise ExecutionError on a non-zero exit """
        result = _run_command(args, timeout=self.timeout)

        if result.returncode != 0:
            raise ExecutionError(
                f"openssl {args[1]} failed",
                command=args,
                returncode=result.returncode,
                stderr=result.stderr or result.stdout or "",
            )

        return result

    # -------------------------
    # Public API
    # -------------------------

    def version(self) -> str:
        """ Return the openssl version string """

        return self._checked([self.bin, "version"]).stdout.strip()

    def generate_key(self, out: Path, key_size: int) -> None:
        """ Generate an RSA private key """

        self._checked([self.bin, "genrsa", "-out", str(out), str(key_size)])

    def generate_csr(self, config: Path, key: Path, out: Path) -> None:
        """ Generate a certificate signing request from a config and key """

        self._checked([self.bin, "req", "-new", "-batch", f"-{self.digest}",
                       "-config", str(config),
                       "-key", str(key),
                       "-out", str(out)])

    def self_sign(self, config: Path, key: Path, out: Path, days: int) -> None:
        """ Generate a self-signed certificate from a config and key """

        self._checked([self.bin, "req", "-new", "-x509", "-batch", f"-{self.digest}",
                       "-config", str(config),
                       "-key", str(key),
                       "-days", str(days),
                       "-out", str(out)])

    def csr_text(self, csr: Path, out: Path) -> None:
        """ Dump a certificate signing request as text """

        self._checked([self.bin, "req", "-noout", "-text",
                       "-in", str(csr),
                       "-out", str(out)])


def _run_command(
        command: list[str],
        *,
        timeout: Optional[float] = None,
        text: bool = True,
    ) -> subprocess.CompletedProcess:
    """ Run a command and capture the output """

    log.debug("Running: %s", " ".join(command))

    try:
        return subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=text,
            timeout=timeout,
            check=False
        )
    except FileNotFoundError as e:
        raise ToolNotFoundError(f"Command not found: {command[0]!r}. Is it installed?", command=command) from e
    except subprocess.TimeoutExpired as e:
        raise ExecutionError(f"Command timed out after {timeout}s", command=command) from e
