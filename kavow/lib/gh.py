from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple

from .command import CmdResult, Runner, run_cmd, which

logger = logging.getLogger(__name__)

REQUIRED_SCOPES = ("repo", "read:org")
KEY_SCOPE = "admin:public_key"


class GitHubCLI:
    """The code-hosting CLI (``gh``)."""

    def __init__(self, runner: Runner = run_cmd) -> None:
        self._run = runner

    def is_available(self) -> bool:
        return which("gh") is not None

    def version(self) -> str:
        r = self._run(["gh", "version"], check=False)
        first = r.stdout.splitlines()[0].split() if r.ok and r.stdout else []
        return first[2] if len(first) >= 3 else "unknown"

    def is_authenticated(self) -> bool:
        return self.is_available() and self._run(["gh", "auth", "status"], check=False).ok

    def current_user(self) -> str:
        r = self._run(["gh", "api", "user", "--jq", ".login"], check=False)
        return r.stdout.strip() if r.ok and r.stdout.strip() else "unknown"

    def authenticate(self, scopes: Sequence[str]) -> bool:
        """Browser-based OAuth login; blocks until the user finishes."""

        r = self._run(
            ["gh", "auth", "login", "--git-protocol", "https", "--scopes", ",".join(scopes), "--web"],
            check=False,
            interactive=True,
        )
        return r.ok

    def logout(self) -> None:
        self._run(["gh", "auth", "logout", "--hostname", "github.com"], check=False, interactive=True)

    def granted_scopes(self) -> Set[str]:
        r = self._run(["gh", "auth", "status"], check=False)
        for line in r.output.splitlines():
            _, found, rest = line.partition("Token scopes:")
            if found:
                return {s.strip(" '\"") for s in rest.split(",") if s.strip(" '\"")}
        return set()

    def missing_scopes(self, required: Sequence[str] = REQUIRED_SCOPES) -> List[str]:
        granted = self.granted_scopes()
        return [scope for scope in required if scope not in granted]

    def can_manage_keys(self) -> bool:
        return self._run(["gh", "api", "/user/keys", "--silent"], check=False).ok

    def refresh_scopes(self, *scopes: str) -> bool:
        argv = ["gh", "auth", "refresh", "-h", "github.com"]
        for scope in scopes:
            argv += ["-s", scope]
        return self._run(argv, check=False, interactive=True).ok

    def add_public_key(self, path: Path, title: str) -> CmdResult:
        return self._run(["gh", "ssh-key", "add", str(path), "--title", title], check=False)

    def key_count(self) -> Optional[int]:
        r = self._run(["gh", "ssh-key", "list", "--json", "title"], check=False)
        if not r.ok:
            return None
        try:
            return len(json.loads(r.stdout or "[]"))
        except json.JSONDecodeError:
            return None

    def status(self) -> List[Tuple[str, str]]:
        if not self.is_available():
            return [("GitHub CLI", "Not installed")]
        rows = [("GitHub CLI", self.version())]
        if self.is_authenticated():
            rows.append(("Authenticated", f"Yes (as {self.current_user()})"))
            count = self.key_count()
            rows.append(("SSH Keys", f"{count if count is not None else 0} registered"))
        else:
            rows.append(("Authenticated", "No"))
        return rows
