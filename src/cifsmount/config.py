"""
Host-wide defaults, read from /etc/cifsmount/defaults.toml
"""

from dataclasses import dataclass, fields, replace
import os
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from cifsmount.errors import ConfigError, ValidationError
from cifsmount.validators import validate_mount_point, validate_smb_version


DEFAULT_CONFIG_PATH = Path("/etc/cifsmount/defaults.toml")
CONFIG_PATH_ENV = "CIFSMOUNT_CONFIG"


@dataclass(frozen=True)
class Settings:
    """
    Everything about the host that a mount plan depends on
    """

    unit_file_path: Path = Path("/etc/systemd/system")
    credentials_dir: Path = Path("/etc")
    smb_version: str = "3.0"
    base_options: str = "_netdev,nofail,iocharset=utf8"
    mount_root: Path = Path("/mnt")
    systemctl: str = "/usr/bin/systemctl"

    @classmethod
    def from_toml(cls, data, source="defaults") -> "Settings":
        """
        Build Settings from the [main] table of a parsed toml document
        """
        main = data.get("main", {})
        if not isinstance(main, dict):
            raise ConfigError(f"{source}: [main] must be a table")

        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(main) - set(known))
        if unknown:
            raise ConfigError(f"{source}: unknown setting(s): {', '.join(unknown)}")

        overrides = {}
        for key, value in main.items():
            if not isinstance(value, str):
                raise ConfigError(f"{source}: {key} must be a string")
            value = str(value)
            if isinstance(known[key].default, Path):
                value = Path(value)
            overrides[key] = value
        settings = replace(cls(), **overrides)

        # these become prompt defaults, so a bad one could never be answered
        try:
            validate_smb_version(settings.smb_version, default="")
            validate_mount_point(str(settings.mount_root))
        except ValidationError as e:
            raise ConfigError(f"{source}: {e}") from e
        return settings

    def as_toml(self) -> str:
        table = {f.name: str(getattr(self, f.name)) for f in fields(self)}
        return tomlkit.dumps({"main": table})


def config_path(cli_value=None) -> Path:
    """
    The defaults file to read: --config, then $CIFSMOUNT_CONFIG, then the
    system-wide location
    """
    if cli_value:
        return Path(cli_value)
    env = os.environ.get(CONFIG_PATH_ENV)
    if env:
        return Path(env)
    return DEFAULT_CONFIG_PATH


def read_toml(filepath: Path):
    """
    Read a toml file, ignoring it if it doesn't exist
    """
    if not filepath.exists():
        return {}

    try:
        with filepath.open("rb") as f:
            data = tomlkit.load(f)
    except (OSError, TOMLKitError) as e:
        raise ConfigError(f"{filepath}: {e}") from e

    return data


def load_settings(filepath: Path) -> Settings:
    return Settings.from_toml(read_toml(filepath), source=str(filepath))
