"""
Package version.
"""
import importlib.metadata
from pathlib import Path

import tomli

DISTRIBUTION = "yafa-bridge"

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def _source_tree_version(pyproject: Path = _PYPROJECT) -> str:
    """Version declared in the pyproject.toml of a source checkout, or 0.0.0."""
    try:
        with pyproject.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (OSError, KeyError, tomli.TOMLDecodeError):
        return "0.0.0"


def get_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return _source_tree_version()


__version__ = get_version()
