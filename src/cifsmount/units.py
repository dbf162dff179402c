"""
Turn MountAnswers into a credentials file and systemd units
"""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
from typing import List, Optional

from cifsmount.answers import MountAnswers
from cifsmount.config import Settings
from cifsmount.system import systemd_escape
from cifsmount.template import *


log = logging.getLogger(__name__)

MOUNT_SUFFIX = ".mount"
WRAPPER_PREFIX = "cifs-"
CREDENTIALS_PREFIX = "cifs-credentials-"


@dataclass
class RenderedFile:
    path: Path
    contents: str
    mode: int = 0o644


@dataclass
class MountPlan:
    """
    All the files for one mount, rendered but not yet written
    """

    answers: MountAnswers
    label: str
    mount_unit: str
    credentials: RenderedFile
    units: List[RenderedFile] = field(default_factory=list)
    wrapper_service: Optional[str] = None

    @property
    def files(self) -> List[RenderedFile]:
        return [self.credentials] + self.units


def unit_name_from_mount_point(mount_point: str, escape=None) -> str:
    """
    /mnt/import -> mnt-import.mount
    """
    escape = escape or systemd_escape
    return escape(mount_point, suffix="mount")


def wrapper_service_name(name: str) -> str:
    return f"{WRAPPER_PREFIX}{name}.service"


def credentials_path(name: str, settings: Settings) -> Path:
    return settings.credentials_dir / f"{CREDENTIALS_PREFIX}{name}"


def build_options(credentials_file: Path, answers: MountAnswers, settings: Settings) -> str:
    """
    The Options= line: credentials, base options, SMB version, then extras
    """
    options = [f"credentials={credentials_file}"]
    if settings.base_options:
        options.append(settings.base_options)
    if answers.smb_version != "default":
        options.append(f"vers={answers.smb_version}")
    if answers.extra_options:
        options.append(answers.extra_options)
    return ",".join(options)


def render_credentials(answers: MountAnswers) -> str:
    contents = CIFS_CREDENTIALS.format(vars=vars(answers))
    if answers.domain:
        contents += CIFS_CREDENTIALS_DOMAIN.format(vars=vars(answers))
    return contents


def render_plan(answers: MountAnswers, settings: Settings, escape=None) -> MountPlan:
    """
    Interpolate answers into our templates.

    A named mount also gets a cifs-<name>.service wrapper; an unnamed one is
    labelled by its mount unit.
    """
    mount_unit = unit_name_from_mount_point(answers.mount_point, escape)
    label = answers.name or mount_unit[: -len(MOUNT_SUFFIX)]
    cred_file = credentials_path(label, settings)

    template_vars = dict(
        vars(answers),
        options=build_options(cred_file, answers, settings),
        mount_unit=mount_unit,
        systemctl=settings.systemctl,
    )

    plan = MountPlan(
        answers=answers,
        label=label,
        mount_unit=mount_unit,
        credentials=RenderedFile(cred_file, render_credentials(answers), 0o600),
    )

    template = CIFS_MOUNT if answers.name else CIFS_SIMPLE_MOUNT
    plan.units.append(
        RenderedFile(settings.unit_file_path / mount_unit, template.format(vars=template_vars))
    )

    if answers.name:
        plan.wrapper_service = wrapper_service_name(answers.name)
        plan.units.append(
            RenderedFile(
                settings.unit_file_path / plan.wrapper_service,
                CIFS_WRAPPER_SERVICE.format(vars=template_vars),
            )
        )

    return plan


def write_file(rendered: RenderedFile):
    """
    Write one file. The mode is set on the open, truncated file before any
    contents go in, including when the file already existed.
    """
    rendered.path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(rendered.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, rendered.mode)
    with os.fdopen(fd, "w") as f:
        os.fchmod(f.fileno(), rendered.mode)
        f.write(rendered.contents)
    log.debug("wrote %s (mode %o)", rendered.path, rendered.mode)


def write_plan(plan: MountPlan):
    """
    Create the mount point, then write the credentials file and units
    """
    Path(plan.answers.mount_point).mkdir(parents=True, exist_ok=True)
    for rendered in plan.files:
        write_file(rendered)
