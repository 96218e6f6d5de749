from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path


def project_root() -> Path:
    # src/ytdlimport/utils/paths.py -> src/ytdlimport/utils -> src/ytdlimport -> src -> root
    return Path(__file__).resolve().parents[3]


def user_data_dir(app_name: str = "ytdl-import") -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path(os.path.expanduser("~")) / ".local" / "share"
    return base / app_name


def default_bin_dir() -> Path:
    return user_data_dir() / "bin"


def default_tmp_dir() -> Path:
    return Path(tempfile.gettempdir()) / "ytdl-import"


def log_dir() -> Path:
    return user_data_dir() / "logs"


def config_path() -> Path:
    """Config file location.

    `YTDLIMPORT_CONFIG` wins; otherwise a repo-root config.json keeps dev runs simple.
    """

    override = os.environ.get("YTDLIMPORT_CONFIG", "").strip()
    if override:
        return Path(override)
    return project_root() / "config.json"


def generate_video_import_tmp_path(target: str, tmp_dir: Path, extension: str = ".mp4") -> Path:
    """Deterministic temp path for an import: same URL, same file."""

    digest = hashlib.sha256(target.encode("utf-8")).hexdigest()
    return Path(tmp_dir) / f"{digest}-import{extension}"
