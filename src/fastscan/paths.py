"""XDG path helpers for runtime state."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs

APP_NAME = "fastscan"
APP_AUTHOR = "fastscan"


def dirs() -> PlatformDirs:
    return PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=False)


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def state_root() -> Path:
    return ensure_dir(Path(dirs().user_state_path))


def log_dir() -> Path:
    return ensure_dir(state_root() / "logs")


def default_log_file() -> Path:
    return log_dir() / "fastscan.runtime.jsonl"
