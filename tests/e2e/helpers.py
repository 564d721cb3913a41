# tests/e2e/helpers.py

import subprocess, sys, pytest

SUBJECT = ("--country", "US", "--state", "CA", "--city", "Berkeley", "--org", "UCB", "--ou", "IT")

def run_hostcert(hostcert_bin, layout, *args):
    cmd = [hostcert_bin, *args,
           "--key-dir", str(layout["key_dir"]),
           "--cert-dir", str(layout["cert_dir"]),
           "--bundle-dir", str(layout["bundle_dir"]),
           "--owner", layout["owner"],
           "--group", layout["group"]]
    if hostcert_bin.endswith(".py"):
        cmd = [sys.executable, *cmd]
    return subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)

def assert_ok(res, step_desc):
    if res.returncode != 0:
        pytest.fail(f"{step_desc} FAILED (code {res.returncode})\n--- output ---\n{res.stdout}\n--------------")
