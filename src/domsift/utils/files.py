"""Project paths used by domsift."""

from pathlib import Path

STATE_DIR = '.domsift'


def get_project_root() -> Path:
    """Find the project root by searching upwards from the current working directory.

    Stops at the first directory containing a marker file.
    """
    current_path = Path.cwd()

    markers = {'.git', 'pyproject.toml', STATE_DIR, 'requirements.txt'}

    for parent in [current_path] + list(current_path.parents):
        if any((parent / marker).exists() for marker in markers):
            return parent

    # No marker anywhere above (e.g. running in /tmp)
    return current_path


def get_logs_path() -> Path:
    """Return the path to the logs directory in .domsift."""
    return get_project_root() / STATE_DIR / 'logs'
