"""Application version module.

Installed builds report the distribution version. Source checkouts read the
VERSION file at the project root (editor/src/version.py -> ../../VERSION).
"""

from importlib import metadata
from pathlib import Path

DISTRIBUTION = "fixture-layout-editor"


def get_version() -> str:
    """Get the application version string (e.g. '0.1.0')."""
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return _source_version()


def _source_version() -> str:
    version_file = Path(__file__).resolve().parent.parent.parent / "VERSION"
    try:
        return version_file.read_text().strip()
    except FileNotFoundError:
        return "0.0.0"
