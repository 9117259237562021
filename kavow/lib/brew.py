from __future__ import annotations

import logging
import shlex
import time
from pathlib import Path
from typing import Callable, List, Sequence, Tuple

from ..installation import InstallResult
from .command import CmdResult, Runner, run_cmd, which
from .env import prepend_path

logger = logging.getLogger(__name__)

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
HOMEBREW_INSTALL_COMMAND = f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"'
HOMEBREW_LOCATIONS = (
    "/usr/local/bin/brew",
    "/opt/homebrew/bin/brew",
    "/home/linuxbrew/.linuxbrew/bin/brew",
)

# Homebrew exits non-zero for these even though the package is usable.
ALREADY_INSTALLED_MARKERS = ("already an App at", "already installed")


def extract_package_info(action: str) -> Tuple[str, str]:
    """Return (kind, name) for an action like ``brew install --cask firefox``."""

    try:
        words = shlex.split(action)
    except ValueError:
        return "formula", ""
    if "--cask" in words:
        rest = words[words.index("--cask") + 1 :]
        kind = "cask"
    else:
        rest = words[words.index("install") + 1 :] if "install" in words else words[-1:]
        kind = "formula"
    names = [w for w in rest if not w.startswith("-")]
    return kind, (names[0] if names else "")


def classify_install_output(result: CmdResult) -> InstallResult:
    if result.ok:
        return InstallResult.success()
    output = result.output
    for marker in ALREADY_INSTALLED_MARKERS:
        if marker in output:
            return InstallResult.already_present(marker)
    detail = output.strip().splitlines()[-1] if output.strip() else f"exit code {result.returncode}"
    return InstallResult.failure(detail)


class Homebrew:
    """The system package manager, driven through the ``brew`` CLI."""

    def __init__(self, runner: Runner = run_cmd, sleep: Callable[[float], None] = time.sleep) -> None:
        self._run = runner
        self._sleep = sleep

    def is_available(self) -> bool:
        return which("brew") is not None

    def prefix(self) -> str | None:
        r = self._run(["brew", "--prefix"], check=False)
        if not r.ok:
            return None
        return r.stdout.strip() or None

    def verify(self) -> bool:
        if not self.is_available():
            return False
        if not self._run(["brew", "--version"], check=False).ok:
            return False
        prefix = self.prefix()
        return bool(prefix) and Path(prefix).is_dir()

    def setup_environment(self) -> None:
        prefix = self.prefix()
        if prefix and prepend_path(Path(prefix) / "bin"):
            logger.debug("Added Homebrew to PATH: %s/bin", prefix)

    def install_homebrew(self) -> bool:
        r = self._run(["/bin/bash", "-c", HOMEBREW_INSTALL_COMMAND], check=False, interactive=True)
        if not r.ok:
            return False
        # Fresh installs land in one of the well-known prefixes, not yet on PATH.
        for location in HOMEBREW_LOCATIONS:
            if Path(location).exists():
                prepend_path(Path(location).parent)
                break
        return True

    def update(self, *, attempts: int = 3, delay: float = 5.0) -> bool:
        for attempt in range(1, attempts + 1):
            logger.debug("Attempt %s/%s: brew update", attempt, attempts)
            if self._run(["brew", "update"], check=False).ok:
                return True
            if attempt < attempts:
                logger.warning("brew update failed, retrying in %ss", delay)
                self._sleep(delay)
        logger.error("brew update failed after %s attempts", attempts)
        return False

    def is_installed(self, name: str, kind: str = "formula") -> bool:
        argv = ["brew", "list", "--cask", name] if kind == "cask" else ["brew", "list", name]
        return self._run(argv, check=False).ok

    def install(self, action: str) -> InstallResult:
        """Run one catalog install action (e.g. ``brew install --cask slack``)."""

        try:
            argv = shlex.split(action)
        except ValueError as e:
            return InstallResult.failure(f"malformed install action {action!r}: {e}")
        if not argv:
            return InstallResult.failure("empty install action")
        return classify_install_output(self._run(argv, check=False))

    def install_package(self, name: str, kind: str = "formula") -> InstallResult:
        action = f"brew install --cask {name}" if kind == "cask" else f"brew install {name}"
        return self.install(action)

    def cleanup(self) -> bool:
        ok = self._run(["brew", "cleanup", "--prune=all"], check=False).ok
        if not ok:
            logger.warning("Failed to clean Homebrew cache, continuing")
        return ok

    def installations(self, locations: Sequence[str] = HOMEBREW_LOCATIONS) -> List[str]:
        return [loc for loc in locations if Path(loc).is_file()]
