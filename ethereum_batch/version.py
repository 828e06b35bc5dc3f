"""
Version of the ethereum-batch distribution.

Installed metadata wins; a source checkout reads ``pyproject.toml`` instead.
"""
import importlib.metadata
import pathlib
from typing import Optional

import tomli

DISTRIBUTION = "ethereum-batch"
FALLBACK_VERSION = "0.1.0"
PYPROJECT = pathlib.Path(__file__).parent.parent / "pyproject.toml"


def _pyproject_version(path: pathlib.Path = PYPROJECT) -> Optional[str]:
    try:
        with path.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return None


def get_version() -> str:
    """Return the installed version, else the checkout's, else ``FALLBACK_VERSION``."""
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return _pyproject_version() or FALLBACK_VERSION


__version__ = get_version()
