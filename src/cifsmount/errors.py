"""
Exceptions raised by cifsmount. The cli reports all of them through argparse.
"""


class CifsMountError(Exception):
    """Base class for every error cifsmount reports to the user"""


class ValidationError(CifsMountError):
    """A prompted or loaded answer is not acceptable"""


class ConfigError(CifsMountError):
    """defaults.toml or an answer file could not be used"""


class NotRootError(CifsMountError):
    def __init__(self):
        super().__init__("Please run as root (sudo).")


class UnsupportedPackageManagerError(CifsMountError):
    def __init__(self, package: str):
        super().__init__(f"Unsupported package manager. Install '{package}' manually.")


class CommandError(CifsMountError):
    """
    An external command that had to succeed did not
    """

    def __init__(self, cmd, returncode: int, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"{' '.join(self.cmd)} failed with exit status {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)
