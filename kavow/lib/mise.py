from __future__ import annotations

import logging
from pathlib import Path

from ..installation import InstallResult
from .command import Runner, run_cmd, which
from .env import PATHS, prepend_path

logger = logging.getLogger(__name__)

MISE_INSTALL_URL = "https://mise.jdx.dev/install.sh"
MISE_FALLBACK_BINS = (PATHS.local_bin, PATHS.home / ".mise" / "bin")

DEFAULT_MISE_CONFIG = """\
[tools]
python = "3.13"
node = "latest"
"""


def tool_spec(name: str, version: str | None) -> str:
    return f"{name}@{version or 'latest'}"


class Mise:
    """The language-version manager."""

    def __init__(self, runner: Runner = run_cmd) -> None:
        self._run = runner

    def is_available(self) -> bool:
        return which("mise") is not None

    def ensure_on_path(self) -> bool:
        if self.is_available():
            return True
        for d in MISE_FALLBACK_BINS:
            if (Path(d) / "mise").exists():
                prepend_path(d)
                break
        return self.is_available()

    def install_self(self) -> bool:
        r = self._run(["/bin/sh", "-c", f"curl -fsSL {MISE_INSTALL_URL} | sh"], check=False, interactive=True)
        prepend_path(PATHS.local_bin)
        return r.ok

    def version(self) -> str:
        r = self._run(["mise", "--version"], check=False)
        return r.stdout.strip() if r.ok else "unknown"

    def write_config(self, path: Path, content: str = DEFAULT_MISE_CONFIG) -> bool:
        """Write a starter config unless the user already has one."""

        if path.exists():
            logger.info("Keeping existing mise config %s", path)
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info("Wrote mise config %s", path)
        return True

    def is_installed(self, name: str, version: str | None = None) -> bool:
        # `mise where` only succeeds for a version that is already on disk.
        return self._run(["mise", "where", tool_spec(name, version)], check=False).ok

    def install(self, name: str, version: str | None = None) -> InstallResult:
        spec = tool_spec(name, version)
        r = self._run(["mise", "install", spec], check=False)
        if not r.ok:
            detail = r.output.strip().splitlines()[-1] if r.output.strip() else f"exit code {r.returncode}"
            return InstallResult.failure(detail)
        return InstallResult.success()

    def use(self, name: str, version: str | None = None) -> bool:
        return self._run(["mise", "use", "--global", tool_spec(name, version)], check=False).ok
