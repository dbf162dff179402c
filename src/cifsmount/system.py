"""
Everything that touches the running host: privileges, packages, systemd
"""

import logging
import os
import shlex
import shutil
import subprocess
import sys

from cifsmount.errors import (
    CommandError,
    NotRootError,
    UnsupportedPackageManagerError,
)


log = logging.getLogger(__name__)

PACKAGE = "cifs-utils"
SYSTEMD_ESCAPE_COMMAND = "systemd-escape"
FINDMNT_COMMAND = "findmnt"

# checked in this order; the first one on PATH wins
PACKAGE_MANAGERS = (
    ("apt-get", (["apt-get", "update", "-y"], ["apt-get", "install", "-y", PACKAGE])),
    ("dnf", (["dnf", "install", "-y", PACKAGE],)),
    ("yum", (["yum", "install", "-y", PACKAGE],)),
    ("zypper", (["zypper", "-n", "install", PACKAGE],)),
)


def run(cmd, check=True, capture=False) -> subprocess.CompletedProcess:
    """
    Run an external command.

    With check=True a non-zero exit (or a missing executable) raises
    CommandError; otherwise the result is returned for the caller to inspect.
    """
    log.debug("running: %s", shlex.join(cmd))
    sys.stdout.flush()
    try:
        result = subprocess.run(cmd, text=True, capture_output=capture)
    except FileNotFoundError as e:
        if check:
            raise CommandError(cmd, 127, str(e)) from e
        log.warning("%s: %s", cmd[0], e)
        return subprocess.CompletedProcess(cmd, 127, "", str(e))

    if check and result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stderr if capture else "")
    return result


def require_root(geteuid=os.geteuid):
    if geteuid() != 0:
        raise NotRootError()


def detect_package_manager(which=shutil.which):
    """
    Return (name, commands) for the first supported package manager on PATH
    """
    for name, commands in PACKAGE_MANAGERS:
        if which(name):
            log.debug("package manager: %s", name)
            return name, commands
    raise UnsupportedPackageManagerError(PACKAGE)


def install_packages(which=shutil.which):
    _, commands = detect_package_manager(which)
    for cmd in commands:
        run(cmd)


def systemd_escape(s: str, suffix: str = None) -> str:
    """
    Escape `s' with `systemd-escape --path <s>`, for use as a mount point path
    """
    cmd = [SYSTEMD_ESCAPE_COMMAND, "--path"]
    if suffix:
        cmd.append(f"--suffix={suffix}")
    cmd.append(s)
    return run(cmd, capture=True).stdout.strip()


def enable_and_start(mount_unit: str, wrapper_service: str = None, systemctl="systemctl"):
    """
    Reload systemd, then enable and start the mount unit and its wrapper.

    The mount unit has to come up; the wrapper is a convenience and its
    failure is only logged.
    """
    run([systemctl, "daemon-reload"])
    run([systemctl, "enable", "--now", mount_unit])

    if wrapper_service:
        result = run([systemctl, "enable", "--now", wrapper_service], check=False, capture=True)
        if result.returncode != 0:
            log.warning(
                "could not enable %s (exit status %s)", wrapper_service, result.returncode
            )


def verify(label: str, mount_point: str, mount_unit: str, wrapper_service: str = None, systemctl="systemctl"):
    """
    Print mount and unit status. Nothing here can fail the run.
    """
    print()
    print(f"=== Verification for '{label}' ===")
    run([FINDMNT_COMMAND, mount_point], check=False)
    print()
    print(f"systemd mount unit: {mount_unit}")
    run([systemctl, "--no-pager", "--full", "status", mount_unit], check=False)
    if wrapper_service:
        print()
        print(f"friendly service: {wrapper_service}")
        run([systemctl, "--no-pager", "--full", "status", wrapper_service], check=False)
