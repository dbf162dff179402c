"""
Templates
"""

from cifsmount.template.cifs_mount import CIFS_MOUNT, CIFS_SIMPLE_MOUNT
from cifsmount.template.cifs_wrapper_service import CIFS_WRAPPER_SERVICE
from cifsmount.template.cifs_credentials import CIFS_CREDENTIALS, CIFS_CREDENTIALS_DOMAIN


__all__ = [
    "CIFS_MOUNT",
    "CIFS_SIMPLE_MOUNT",
    "CIFS_WRAPPER_SERVICE",
    "CIFS_CREDENTIALS",
    "CIFS_CREDENTIALS_DOMAIN",
]
