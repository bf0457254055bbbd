"""
Public key lookup for new instances.

The provisioning script appends the key to the guest's authorized_keys,
so the file must hold a single OpenSSH public key line.
"""

import os

from boxfleet.utils.logger import get_logger

log = get_logger(__name__)

# Key type prefixes OpenSSH writes into .pub files
KEY_TYPE_PREFIXES = ("ssh-", "ecdsa-", "sk-")


def read_public_key_file(file_path: str) -> str:
    """
    Read the public key to install on a new instance.

    Blank lines and ``#`` comments are skipped; the first remaining line
    is the key.

    Raises:
        FileNotFoundError: If there is no file at ``file_path``.
        ValueError: If the file holds no key line.
    """
    path = os.path.expanduser(file_path)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"No public key at '{file_path}'")

    with open(path) as f:
        lines = [line.strip() for line in f]
    keys = [line for line in lines if line and not line.startswith("#")]
    if not keys:
        raise ValueError(f"No public key line in '{file_path}'")

    key = keys[0]
    if not key.startswith(KEY_TYPE_PREFIXES):
        log.warning(f"'{file_path}' does not look like an OpenSSH public key")
    return key


def read_default_public_key(file_path: str) -> str:
    """Read the default public key, or return "" when there is none."""
    try:
        return read_public_key_file(file_path)
    except (FileNotFoundError, ValueError) as e:
        log.debug(f"Installing no public key: {e}")
        return ""
