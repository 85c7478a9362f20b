"""Centralized path definitions for socketmail.

All application paths hang off a single base directory, which defaults to
``~/.socketmail`` and can be moved with the ``SOCKETMAIL_HOME`` environment
variable (the test suite relies on this).
"""

import os
from pathlib import Path


def get_base_dir() -> Path:
    """Return the base application directory."""
    override = os.environ.get("SOCKETMAIL_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".socketmail"


def get_logs_dir() -> Path:
    """Return the directory holding rotating log files."""
    return get_base_dir() / "logs"


def get_config_path() -> Path:
    """Return the path of the JSON configuration file."""
    return get_base_dir() / "config.json"
