"""Single source of truth for the application version.

Reads the version from pyproject.toml at import time using tomllib (stdlib, Python 3.11+).
Falls back to installed package metadata when the source tree is not available.
"""

import tomllib
from importlib import metadata
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_version() -> str:
    """Read and return the version string from pyproject.toml."""
    pyproject_path = _PROJECT_ROOT / "pyproject.toml"
    if not pyproject_path.exists():
        return metadata.version("life-calendar-bot")
    with open(pyproject_path, "rb") as f:
        data = tomllib.load(f)
    return data["project"]["version"]


__version__: str = get_version()
