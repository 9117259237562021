from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import StateCorrupt

logger = logging.getLogger(__name__)

STATE_VERSION = "1.0.0"
REQUIRED_KEYS = ("version", "current_stage", "homebrew_installed")

MILESTONE_KEYS = (
    "homebrew_installed",
    "gum_installed",
    "git_configured",
    "mise_configured",
    "github_authenticated",
    "ssh_key_generated",
    "setup_complete",
)

LIST_KEYS = (
    "selected_apps",
    "installed_apps",
    "failed_apps",
    "selected_languages",
    "installed_languages",
    "failed_languages",
)

Clock = Callable[[], str]


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def initial_state(now: str) -> Dict[str, Any]:
    state: Dict[str, Any] = {
        "version": STATE_VERSION,
        "current_stage": "init",
        "recovery_point": "",
        "start_time": now,
        "last_updated": now,
    }
    for key in MILESTONE_KEYS:
        state[key] = False
    for key in LIST_KEYS:
        state[key] = []
    return state


def load_state(path: Path) -> Dict[str, Any]:
    """Parse the state document; {} if it does not exist."""

    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise StateCorrupt(f"State file is not valid JSON: {path} ({e})") from e
    if not isinstance(data, dict):
        raise StateCorrupt(f"State file must be an object/dict, got {type(data).__name__}: {path}")
    return data


def save_state(path: Path, state: Dict[str, Any]) -> None:
    """Write via temp file + rename so a crash never leaves a partial document."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".state-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json.dumps(state, indent=2) + "\n")
        os.chmod(temp_path, 0o600)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def validation_problems(state: Dict[str, Any]) -> List[str]:
    return [f"missing required key: {key}" for key in REQUIRED_KEYS if key not in state]


class StateStore:
    """The single per-user state document.

    Every mutation is a read-modify-write of the whole document, so keys this
    version does not know about survive untouched.
    """

    def __init__(self, path: Path, *, clock: Clock = utc_now) -> None:
        self.path = Path(path)
        self._clock = clock

    @property
    def state_dir(self) -> Path:
        return self.path.parent

    @property
    def history_dir(self) -> Path:
        return self.state_dir / "history"

    def exists(self) -> bool:
        return self.path.exists()

    def initialize(self) -> Dict[str, Any]:
        """Create the state directory and a fresh document if none exists."""

        self.state_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.state_dir, 0o700)
        if self.exists():
            return self.read()
        state = initial_state(self._clock())
        save_state(self.path, state)
        logger.info("Initialized state file: %s", self.path)
        return state

    def read(self) -> Dict[str, Any]:
        if not self.exists():
            raise StateCorrupt(f"State file not found: {self.path}")
        return load_state(self.path)

    def update(self, transform: Callable[[Dict[str, Any]], None]) -> Dict[str, Any]:
        state = self.read()
        transform(state)
        state["last_updated"] = self._clock()
        save_state(self.path, state)
        return state

    def get(self, key: str, default: Any = None) -> Any:
        if not self.exists():
            return default
        return self.read().get(key, default)

    def flag(self, key: str) -> bool:
        value = self.get(key, False)
        # Older documents stored booleans as the strings "true"/"false".
        if isinstance(value, str):
            return value.lower() == "true"
        return bool(value)

    def values(self, list_key: str) -> List[str]:
        return [str(v) for v in (self.get(list_key) or [])]

    def set_value(self, key: str, value: Any) -> None:
        def _set(state: Dict[str, Any]) -> None:
            state[key] = value

        self.update(_set)
        logger.debug("Updated state: %s = %r", key, value)

    def set_values(self, **values: Any) -> None:
        self.update(lambda state: state.update(values))
        logger.debug("Updated state: %s", ", ".join(f"{k}={v!r}" for k, v in values.items()))

    def append(self, list_key: str, value: str) -> None:
        """Append without de-duplication; selections accumulate across re-runs."""

        def _append(state: Dict[str, Any]) -> None:
            state.setdefault(list_key, []).append(value)

        self.update(_append)
        logger.debug("Added to %s: %s", list_key, value)

    def record_outcome(self, key: str, *, add_to: str, remove_from: str) -> None:
        """Move an item into one result list and out of the opposite one."""

        def _record(state: Dict[str, Any]) -> None:
            target = state.setdefault(add_to, [])
            if key not in target:
                target.append(key)
            state[remove_from] = [v for v in state.get(remove_from) or [] if v != key]

        self.update(_record)
        logger.debug("Recorded %s in %s", key, add_to)

    def validate(self) -> List[str]:
        """Problems preventing a resume; empty when the document is usable."""

        if not self.exists():
            return [f"state file not found: {self.path}"]
        try:
            state = load_state(self.path)
        except StateCorrupt as e:
            return [str(e)]
        return validation_problems(state)

    def clean(self) -> None:
        """Drop the document and its archived history; the directory itself stays."""

        if self.exists():
            self.path.unlink()
        if self.history_dir.exists():
            shutil.rmtree(self.history_dir)
        logger.info("Cleaned up state in %s", self.state_dir)

    def archive(self, *, stamp: Optional[str] = None) -> Optional[Path]:
        """Copy the document into history/ and start over with a fresh one."""

        if not self.exists():
            return None
        stamp = stamp or datetime.now().strftime("%Y%m%d_%H%M%S")
        self.history_dir.mkdir(parents=True, exist_ok=True)
        dest = self.history_dir / f"state_{stamp}.json"
        shutil.copy2(self.path, dest)
        self.path.unlink()
        self.initialize()
        logger.info("Reset state, kept history in %s", dest)
        return dest

    def summary(self) -> List[Tuple[str, str]]:
        state = self.read()

        def flag(key: str) -> str:
            value = state.get(key, False)
            if isinstance(value, str):
                return value.lower()
            return "true" if value else "false"

        def count(key: str) -> int:
            return len(state.get(key) or [])

        rows: List[Tuple[str, str]] = [
            ("Current Stage", str(state.get("current_stage", "init"))),
            ("Homebrew Installed", flag("homebrew_installed")),
            ("Gum Installed", flag("gum_installed")),
            ("Git Configured", flag("git_configured")),
            ("Mise Configured", flag("mise_configured")),
            ("GitHub Authenticated", flag("github_authenticated")),
            ("SSH Key Generated", flag("ssh_key_generated")),
            ("Selected Apps", str(count("selected_apps"))),
            ("Installed Apps", str(count("installed_apps"))),
        ]
        if count("failed_apps"):
            rows.append(("Failed Apps", str(count("failed_apps"))))
        rows += [
            ("Selected Languages", str(count("selected_languages"))),
            ("Installed Languages", str(count("installed_languages"))),
        ]
        if count("failed_languages"):
            rows.append(("Failed Languages", str(count("failed_languages"))))
        rows += [
            ("Setup Complete", flag("setup_complete")),
            ("Last Updated", str(state.get("last_updated", ""))),
        ]
        return rows
