"""
Version information for ethr-did-controller.

The installed distribution's metadata is authoritative. In a source
checkout the version is read from ``pyproject.toml`` next to the package.
"""
import importlib.metadata
import logging
import pathlib
from typing import Optional

import tomli

logger = logging.getLogger(__name__)

DISTRIBUTION = "ethr-did-controller"
FALLBACK_VERSION = "0.1.0"
PYPROJECT_PATH = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def installed_version() -> Optional[str]:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return None


def pyproject_version(path: pathlib.Path = PYPROJECT_PATH) -> Optional[str]:
    """
    Version declared in a source checkout's ``pyproject.toml``.

    Returns None when the file is missing or unreadable, or when it belongs
    to some other project (a checkout vendored inside another repo).
    """
    try:
        with path.open("rb") as f:
            project = tomli.load(f).get("project", {})
    except (OSError, tomli.TOMLDecodeError) as e:
        logger.debug(f"No usable pyproject.toml at {path}: {e}")
        return None

    if project.get("name") != DISTRIBUTION:
        return None
    version = project.get("version")
    return version if isinstance(version, str) else None


__version__ = installed_version() or pyproject_version() or FALLBACK_VERSION
