# tests/e2e/conftest.py

import grp
import os
import pwd
import shutil
import stat
import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.e2e

@pytest.fixture(scope="session")
def openssl_path():
    path = shutil.which("openssl")
    if not path:
        pytest.skip("openssl not found on PATH; skipping real e2e.")
    return path

@pytest.fixture(scope="session")
def hostcert_bin(pytestconfig, tmp_path_factory, openssl_path):
    """
    Run repo code via `python -m hostcert` (no PATH reliance).
    Allow override via HOSTCERT_BIN.
    """
    override = os.environ.get("HOSTCERT_BIN")
    if override:
        p = Path(override)
        if not p.exists():
            pytest.skip(f"HOSTCERT_BIN={override} does not exist")
        return str(p.resolve())

    root = Path(pytestconfig.rootpath)
    src_dir = root / "src"
    pkg_main = src_dir / "hostcert" / "__main__.py"
    if not pkg_main.exists():
        pytest.skip(f"Could not find {pkg_main}. Expected package at src/hostcert.")

    # shim that sets PYTHONPATH and runs -m hostcert
    shim = tmp_path_factory.mktemp("hostcert_shim") / "hostcert"
    shim.write_text(
        f"#!/usr/bin/env bash\n"
        f"set -euo pipefail\n"
        f'export PYTHONPATH="{src_dir}:{os.environ.get("PYTHONPATH", "")}"\n'
        f'"{sys.executable}" -m hostcert "$@"\n'
    )
    shim.chmod(shim.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(shim.resolve())

@pytest.fixture
def layout(tmp_path):
    """ Artifact directories under tmp_path, owned by the current user """
    return {
        "key_dir": tmp_path / "private",
        "cert_dir": tmp_path / "certs",
        "bundle_dir": tmp_path / "bundles",
        "owner": pwd.getpwuid(os.getuid()).pw_name,
        "group": grp.getgrgid(os.getgid()).gr_name,
    }
