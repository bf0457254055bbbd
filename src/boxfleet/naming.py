"""Instance state layout and naming conventions."""

import os

# File written into each instance directory by the instance store
RECORD_FILE = "boxfleet.json"

# Machine-readable listing record type carrying an image name
BOX_NAME_MARKER = "box-name"


def instance_dir(state_dir: str, address: str) -> str:
    """Get instance directory path; one directory per assigned address."""
    return os.path.join(state_dir, address)


def instance_record_path(work_dir: str) -> str:
    """Get the persisted instance record path within an instance directory."""
    return os.path.join(work_dir, RECORD_FILE)
