"""
Collect the parameters of one CIFS mount, either by asking questions or from
an answers.toml file
"""

from dataclasses import asdict, dataclass, field, fields
import logging
from pathlib import Path

import questionary
import tomlkit

from cifsmount.config import Settings, read_toml
from cifsmount.errors import ConfigError, ValidationError
from cifsmount.validators import (
    DEFAULT_SMB_VERSION,
    sanitize_name,
    validate_extra_options,
    validate_mount_point,
    validate_remote,
    validate_secret_field,
    validate_smb_version,
)


log = logging.getLogger(__name__)


@dataclass
class MountAnswers:
    remote: str
    mount_point: str
    username: str
    password: str = field(repr=False)
    domain: str = ""
    smb_version: str = DEFAULT_SMB_VERSION
    name: str = ""
    extra_options: str = ""

    def public_dict(self) -> dict:
        """
        Everything except the password, for saving to answers.toml
        """
        ret = asdict(self)
        del ret["password"]
        return ret


def _check(validator, *args):
    """
    Adapt one of our validators to questionary's validate= protocol
    """

    def check(text):
        try:
            validator(text, *args)
        except ValidationError as e:
            return str(e)
        return True

    return check


def ask_password(label: str = "Password") -> str:
    password = questionary.password(
        f"{label}:", validate=_check(validate_secret_field, label)
    ).unsafe_ask()
    return validate_secret_field(password, label)


def ask_mount(settings: Settings, named=True) -> MountAnswers:
    """
    Ask the questions for one mount.

    Every question re-prompts until its answer validates. named=False skips
    the mount name and extra options, which only `add` uses.
    """
    print()
    print("=== Add a CIFS mount ===")

    name = ""
    default_mount_point = ""
    if named:
        name = sanitize_name(
            questionary.text(
                "Mount name (e.g. import, media, photos):", validate=_check(sanitize_name)
            ).unsafe_ask()
        )
        default_mount_point = str(settings.mount_root / name)

    remote = validate_remote(
        questionary.text(
            "Remote share (UNC, e.g. //server/share):", validate=_check(validate_remote)
        ).unsafe_ask()
    )
    mount_point = validate_mount_point(
        questionary.path(
            f"Mount point (e.g. {settings.mount_root}/{name or 'share'}):",
            default=default_mount_point,
            only_directories=True,
            validate=_check(validate_mount_point),
        ).unsafe_ask()
    )
    username = validate_secret_field(
        questionary.text("Username:", validate=_check(validate_secret_field, "Username")).unsafe_ask(),
        "Username",
    )
    password = ask_password()
    domain = validate_secret_field(
        questionary.text(
            "Domain / Workgroup (leave blank if none):",
            validate=_check(validate_secret_field, "Domain", False),
        ).unsafe_ask().strip(),
        "Domain",
        required=False,
    )
    smb_version = validate_smb_version(
        questionary.text(
            f"SMB version [{settings.smb_version}]:",
            validate=_check(validate_smb_version, settings.smb_version),
        ).unsafe_ask(),
        default=settings.smb_version,
    )

    extra_options = ""
    if named:
        extra_options = validate_extra_options(
            questionary.text(
                "Extra mount options (comma-separated, optional):",
                validate=_check(validate_extra_options),
            ).unsafe_ask()
        )

    return MountAnswers(
        remote=remote,
        mount_point=mount_point,
        username=username,
        password=password,
        domain=domain,
        smb_version=smb_version,
        name=name,
        extra_options=extra_options,
    )


def ask_again() -> bool:
    print()
    return questionary.confirm("Add another mount?", default=False).unsafe_ask()


def answers_from_mapping(data, settings: Settings, named=True, password_prompt=ask_password) -> MountAnswers:
    """
    Validate one [[mount]] table from an answer file.

    A table without a password gets one by asking for it, once everything
    else in the table has validated.
    """
    known = {f.name for f in fields(MountAnswers)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown answer(s): {', '.join(unknown)}")

    def get(key):
        value = data.get(key, "")
        if not isinstance(value, str):
            raise ConfigError(f"answer {key} must be a string")
        return str(value)

    name = ""
    if named:
        name = sanitize_name(get("name"))
    elif get("name"):
        log.debug("ignoring name %r for an unnamed mount", get("name"))

    remote = validate_remote(get("remote"))
    mount_point = validate_mount_point(
        get("mount_point") or (str(settings.mount_root / name) if name else "")
    )
    username = validate_secret_field(get("username"), "Username")
    domain = validate_secret_field(get("domain").strip(), "Domain", required=False)
    smb_version = validate_smb_version(get("smb_version"), default=settings.smb_version)
    extra_options = validate_extra_options(get("extra_options")) if named else ""

    password = get("password")
    if not password:
        password = password_prompt(f"Password for {name or remote}")

    return MountAnswers(
        remote=remote,
        mount_point=mount_point,
        username=username,
        password=validate_secret_field(password, "Password"),
        domain=domain,
        smb_version=smb_version,
        name=name,
        extra_options=extra_options,
    )


def load_answer_file(filepath: Path, settings: Settings, named=True, password_prompt=ask_password) -> list:
    """
    Read every [[mount]] table of an answer file
    """
    if not filepath.exists():
        raise FileNotFoundError(f"{filepath}: no such answer file")

    mounts = read_toml(filepath).get("mount", [])
    if not isinstance(mounts, list) or not mounts:
        raise ConfigError(f"{filepath}: expected at least one [[mount]] table")

    ret = []
    for index, table in enumerate(mounts, start=1):
        if not isinstance(table, dict):
            raise ConfigError(f"{filepath}: mount #{index} is not a table")
        try:
            ret.append(answers_from_mapping(table, settings, named, password_prompt))
        except (ConfigError, ValidationError) as e:
            raise ConfigError(f"{filepath}: mount #{index}: {e}") from e
    return ret


def dump_answers(answers_list) -> str:
    """
    Serialize answers (minus passwords) in the format load_answer_file reads
    """
    doc = tomlkit.document()
    mounts = tomlkit.aot()
    for answers in answers_list:
        table = tomlkit.table()
        table.update(answers.public_dict())
        mounts.append(table)
    doc.add("mount", mounts)
    return tomlkit.dumps(doc)
