from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .lib.env import PATHS

DEFAULT_PREFLIGHT_URLS = (
    "https://github.com",
    "https://raw.githubusercontent.com",
    "https://formulae.brew.sh",
)
DEFAULT_GITHUB_SCOPES = ("repo", "read:org", "workflow", "admin:public_key")

# LOG_LEVEL accepts the numeric scale used by the shell tooling (1..4) or a level name.
_NUMERIC_LEVELS = {
    "1": logging.ERROR,
    "2": logging.WARNING,
    "3": logging.INFO,
    "4": logging.DEBUG,
}


def _package_data_dir() -> Path:
    return Path(__file__).resolve().parent / "data"


def parse_log_level(value: Any, default: int = logging.INFO) -> int:
    if value is None or value == "":
        return default
    text = str(value).strip()
    if text in _NUMERIC_LEVELS:
        return _NUMERIC_LEVELS[text]
    level = logging.getLevelName(text.upper())
    if isinstance(level, int):
        return level
    return default


@dataclass(frozen=True)
class Settings:
    raw: Dict[str, Any]

    @property
    def state_dir(self) -> Path:
        return Path(str(self.raw.get("state_dir") or PATHS.state_dir)).expanduser()

    @property
    def state_path(self) -> Path:
        return self.state_dir / "state.json"

    @property
    def lock_path(self) -> Path:
        return self.state_dir / ".lock"

    @property
    def history_dir(self) -> Path:
        return self.state_dir / "history"

    @property
    def data_dir(self) -> Path:
        return Path(str(self.raw.get("data_dir") or _package_data_dir())).expanduser()

    @property
    def log_path(self) -> Path:
        return Path(str(self.raw.get("log_path") or (self.state_dir / "kavow.log"))).expanduser()

    @property
    def log_level(self) -> int:
        if str(self.raw.get("debug") or "") == "1":
            return logging.DEBUG
        return parse_log_level(self.raw.get("log_level"))

    @property
    def lock_wait_seconds(self) -> float:
        return float(self.raw.get("lock_wait_seconds", 30))

    @property
    def lock_poll_seconds(self) -> float:
        return float(self.raw.get("lock_poll_seconds", 1.0))

    @property
    def network_timeout_seconds(self) -> int:
        return int(self.raw.get("network_timeout_seconds", 10))

    @property
    def required_disk_gb(self) -> int:
        return int(self.raw.get("required_disk_gb", 5))

    @property
    def preflight_urls(self) -> List[str]:
        return list(self.raw.get("preflight_urls") or DEFAULT_PREFLIGHT_URLS)

    @property
    def github_scopes(self) -> List[str]:
        return list(self.raw.get("github_scopes") or DEFAULT_GITHUB_SCOPES)

    @property
    def ssh_key_path(self) -> Path:
        return Path(str(self.raw.get("ssh_key_path") or PATHS.ssh_key)).expanduser()

    @property
    def mise_config_path(self) -> Path:
        return Path(str(self.raw.get("mise_config_path") or PATHS.mise_config)).expanduser()


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if environ.get("KAVOW_STATE_DIR"):
        out["state_dir"] = environ["KAVOW_STATE_DIR"]
    if environ.get("KAVOW_DATA_DIR"):
        out["data_dir"] = environ["KAVOW_DATA_DIR"]
    if environ.get("LOG_LEVEL"):
        out["log_level"] = environ["LOG_LEVEL"]
    if environ.get("DEBUG"):
        out["debug"] = environ["DEBUG"]
    return out


def load_settings(
    path: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from YAML, then apply environment overrides.

    An explicit path must exist; the default path is optional.
    """

    env = os.environ if environ is None else environ
    p = Path(path).expanduser() if path else PATHS.settings_file

    raw: Dict[str, Any] = {}
    if p.exists():
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ValueError(f"settings file must be YAML: {p}")
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"settings file must contain a mapping/object: {p}")
        raw.update(data)
    elif path:
        raise FileNotFoundError(path)

    raw.update(_env_overrides(env))
    return Settings(raw=raw)
