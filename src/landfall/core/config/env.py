"""
.env loading.

Variables already present in the process environment always win. Between
files, the project's ``.env.local`` beats its ``.env``, which beats the user's
``~/.config/landfall/.env``. Loading the highest-precedence file first with
``override=False`` gives exactly that order.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

from landfall.core.config.loader import get_xdg_config_home


def env_file_paths(project_dir: Path | None = None) -> list[Path]:
    """Candidate .env files, highest precedence first."""
    project_dir = project_dir or Path.cwd()
    return [
        project_dir / ".env.local",
        project_dir / ".env",
        get_xdg_config_home() / "landfall" / ".env",
    ]


def load_layered_env(project_dir: Path | None = None) -> list[Path]:
    """
    Load every existing .env file into ``os.environ``.

    Returns:
        The files that were loaded
    """
    loaded: list[Path] = []
    for path in env_file_paths(project_dir):
        if path.is_file():
            load_dotenv(path, override=False)
            loaded.append(path)
    return loaded
