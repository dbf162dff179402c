"""
Checks for everything a user can type in, shared by prompts, answer files and
defaults.toml. Each returns the cleaned value or raises ValidationError.
"""

import re

from cifsmount.errors import ValidationError


DEFAULT_SMB_VERSION = "3.0"

NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
UNC_RE = re.compile(r"^//[^/\s]+/[^/].*$")
SMB_VERSION_RE = re.compile(r"^[0-9]+(\.[0-9]+)*$")

# secrets go in the credentials file, never in the unit
FORBIDDEN_OPTIONS = ("credentials", "username", "user", "password", "pass")


def sanitize_name(raw: str) -> str:
    """
    Turn a human-chosen mount name into one usable in unit and file names
    """
    if not raw:
        raise ValidationError("Name is required.")
    name = raw.replace(" ", "-")
    if not NAME_RE.match(name):
        raise ValidationError(
            f"Invalid name '{raw}'. Use only letters, numbers, dash, underscore."
        )
    return name


def validate_remote(text: str) -> str:
    remote = text.strip()
    if not remote:
        raise ValidationError("Remote share is required.")
    remote = remote.replace("\\", "/")
    if "\n" in remote or not UNC_RE.match(remote):
        raise ValidationError(f"Remote share must look like //server/share: {text}")
    return remote.rstrip("/")


def validate_mount_point(text: str) -> str:
    mount_point = text.strip()
    if not mount_point:
        raise ValidationError("Mount point is required.")
    if not mount_point.startswith("/"):
        raise ValidationError(f"Mount point must be absolute: {mount_point}")
    if any(c.isspace() for c in mount_point):
        raise ValidationError(f"Mount point may not contain whitespace: {mount_point}")
    if ".." in mount_point.split("/"):
        raise ValidationError(f"Mount point may not contain '..': {mount_point}")

    mount_point = re.sub(r"/+", "/", mount_point).rstrip("/")
    if not mount_point:
        raise ValidationError("Refusing to mount over /")
    return mount_point


def validate_smb_version(text: str, default: str = DEFAULT_SMB_VERSION) -> str:
    version = text.strip() or default
    if version != "default" and not SMB_VERSION_RE.match(version):
        raise ValidationError(f"Invalid SMB version '{version}' (e.g. 2.1, 3.0, 3.1.1)")
    return version


def validate_extra_options(text: str) -> str:
    """
    Normalize a comma-separated option list; empty items are dropped
    """
    options = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        if any(c.isspace() for c in item):
            raise ValidationError(f"Mount option may not contain whitespace: {item!r}")
        if item.split("=", 1)[0].lower() in FORBIDDEN_OPTIONS:
            raise ValidationError(
                f"'{item}' does not belong in the mount options, it goes in the credentials file"
            )
        options.append(item)
    return ",".join(options)


def validate_secret_field(text: str, label: str, required=True) -> str:
    """
    Username, password and domain are written one per line, so newlines are out
    """
    if required and not text:
        raise ValidationError(f"{label} is required.")
    if "\n" in text or "\r" in text:
        raise ValidationError(f"{label} may not contain line breaks.")
    return text
