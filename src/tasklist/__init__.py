"""Terminal todo list with local persistence."""

from __future__ import annotations

import importlib.metadata
from pathlib import Path

__all__ = ["__version__"]

try:
    import tomli
except ModuleNotFoundError:
    tomli = None  # type: ignore[assignment]


def _get_version() -> str:
    """Get version from pyproject.toml or importlib.metadata.

    Source checkouts read pyproject.toml directly; installed packages
    use importlib.metadata.

    Returns:
        Version string.
    """
    if tomli is not None:
        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            try:
                with open(pyproject_path, "rb") as f:
                    return tomli.load(f)["project"]["version"]
            except (OSError, KeyError, tomli.TOMLDecodeError):
                pass  # Fall through to importlib.metadata

    try:
        return importlib.metadata.version("tasklist")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-unknown"


__version__ = _get_version()
