from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from ..errors import SetupAbort
from .command import Runner, run_cmd, which

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

DEFAULT_SETTINGS: Tuple[Tuple[str, str], ...] = (
    ("init.defaultBranch", "main"),
    ("pull.rebase", "false"),
    ("core.autocrlf", "input"),
    ("core.editor", "vim"),
    ("push.default", "simple"),
    ("branch.autosetupmerge", "always"),
    ("branch.autosetuprebase", "always"),
    ("color.ui", "auto"),
    ("core.preloadindex", "true"),
    ("core.fscache", "true"),
    ("gc.auto", "256"),
)

DEFAULT_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("co", "checkout"),
    ("br", "branch"),
    ("ci", "commit"),
    ("st", "status"),
    ("unstage", "reset HEAD --"),
    ("last", "log -1 HEAD"),
    ("visual", "!gitk"),
    ("lg", "log --oneline --decorate --all --graph"),
    ("amend", "commit --amend"),
    ("pushf", "push --force-with-lease"),
    ("undo", "reset --soft HEAD~1"),
)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


class Git:
    def __init__(self, runner: Runner = run_cmd) -> None:
        self._run = runner

    def is_available(self) -> bool:
        return which("git") is not None

    def version(self) -> str:
        r = self._run(["git", "--version"], check=False)
        parts = r.stdout.split()
        return parts[2] if r.ok and len(parts) >= 3 else "unknown"

    def get_config(self, key: str) -> Optional[str]:
        r = self._run(["git", "config", "--global", key], check=False)
        value = r.stdout.strip()
        return value if r.ok and value else None

    def set_config(self, key: str, value: str) -> bool:
        ok = self._run(["git", "config", "--global", key, value], check=False).ok
        if ok:
            logger.debug("Set %s = %s", key, value)
        else:
            logger.warning("Failed to set %s = %s", key, value)
        return ok

    def identity(self) -> Tuple[Optional[str], Optional[str]]:
        return self.get_config("user.name"), self.get_config("user.email")

    def is_configured(self) -> bool:
        name, email = self.identity()
        return bool(name and email)

    def set_identity(self, name: str, email: str) -> None:
        if not self.set_config("user.name", name):
            raise SetupAbort("Failed to set Git name", remediation=f'git config --global user.name "{name}"')
        if not self.set_config("user.email", email):
            raise SetupAbort("Failed to set Git email", remediation=f'git config --global user.email "{email}"')

    def apply_defaults(
        self,
        settings: Sequence[Tuple[str, str]] = DEFAULT_SETTINGS,
        aliases: Sequence[Tuple[str, str]] = DEFAULT_ALIASES,
    ) -> List[str]:
        """Apply recommended settings and aliases; returns the keys that failed."""

        failed: List[str] = []
        for key, value in settings:
            if not self.set_config(key, value):
                failed.append(key)
        for alias, command in aliases:
            if not self.set_config(f"alias.{alias}", command):
                failed.append(f"alias.{alias}")
        return failed

    def use_ssh_for_github(self) -> bool:
        return self.set_config('url.git@github.com:.insteadOf', "https://github.com/")

    def status(self) -> List[Tuple[str, str]]:
        if not self.is_available():
            return [("Git", "Not installed")]
        rows = [("Git Version", self.version())]
        name, email = self.identity()
        if name and email:
            rows += [
                ("Name", name),
                ("Email", email),
                ("Default Branch", self.get_config("init.defaultBranch") or "master"),
            ]
        else:
            rows.append(("Status", "Not configured"))
        return rows
