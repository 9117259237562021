from __future__ import annotations

import logging
import os
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from .command import Runner, run_cmd

logger = logging.getLogger(__name__)

SSH_CONFIG_BLOCK = """\
Host github.com
    HostName github.com
    User git
    PreferredAuthentications publickey
    IdentityFile {key_path}
    AddKeysToAgent yes
    UseKeychain yes

Host *
    AddKeysToAgent yes
    UseKeychain yes
    ServerAliveInterval 60
    ServerAliveCountMax 3
"""

_AGENT_VAR = re.compile(r"(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;]+);")


class SSHKeys:
    """An ed25519 key pair plus the ssh config that points GitHub at it."""

    def __init__(self, key_path: Path, runner: Runner = run_cmd) -> None:
        self.key_path = Path(key_path)
        self._run = runner

    @property
    def ssh_dir(self) -> Path:
        return self.key_path.parent

    @property
    def pub_path(self) -> Path:
        return self.key_path.with_name(self.key_path.name + ".pub")

    @property
    def config_path(self) -> Path:
        return self.ssh_dir / "config"

    def ensure_dir(self) -> None:
        self.ssh_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.ssh_dir, 0o700)

    def exists(self) -> bool:
        return self.key_path.exists()

    def _fingerprint_fields(self) -> List[str]:
        r = self._run(["ssh-keygen", "-l", "-f", str(self.key_path)], check=False)
        return r.stdout.split() if r.ok else []

    def key_type(self) -> Optional[str]:
        fields = self._fingerprint_fields()
        return fields[3].strip("()") if len(fields) >= 4 else None

    def fingerprint(self) -> Optional[str]:
        fields = self._fingerprint_fields()
        return fields[1] if len(fields) >= 2 else None

    def verify(self) -> bool:
        if not (self.key_path.exists() and self.pub_path.exists()):
            return False
        if not self._run(["ssh-keygen", "-y", "-f", str(self.key_path)], check=False).ok:
            return False
        return self.key_type() == "ED25519"

    def backup(self, *, stamp: Optional[str] = None) -> Path:
        stamp = stamp or datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_dir = self.ssh_dir / f"backup_{stamp}"
        backup_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(backup_dir, 0o700)
        for p in (self.key_path, self.pub_path):
            if p.exists():
                shutil.copy2(p, backup_dir / p.name)
                logger.info("Backed up %s to %s", p, backup_dir)
        return backup_dir

    def generate(self, email: str) -> bool:
        # Interactive so the user can choose a passphrase.
        if self.key_path.exists():
            self.key_path.unlink()
        if self.pub_path.exists():
            self.pub_path.unlink()
        r = self._run(
            ["ssh-keygen", "-t", "ed25519", "-C", email, "-f", str(self.key_path)],
            check=False,
            interactive=True,
        )
        if not r.ok:
            return False
        os.chmod(self.key_path, 0o600)
        os.chmod(self.pub_path, 0o644)
        return True

    def write_config(self) -> bool:
        """Add the GitHub host block; False if the config already has one."""

        if self.config_path.exists():
            current = self.config_path.read_text(encoding="utf-8")
            if "Host github.com" in current:
                return False
            backup = self.config_path.with_name(f"config.backup.{int(datetime.now().timestamp())}")
            shutil.copy2(self.config_path, backup)
            logger.info("Created backup: %s", backup)
        self.config_path.write_text(SSH_CONFIG_BLOCK.format(key_path=self.key_path), encoding="utf-8")
        os.chmod(self.config_path, 0o600)
        return True

    def start_agent(self) -> bool:
        if os.environ.get("SSH_AUTH_SOCK"):
            logger.debug("SSH agent is already running")
            return True
        r = self._run(["ssh-agent", "-s"], check=False)
        if not r.ok:
            return False
        for name, value in _AGENT_VAR.findall(r.stdout):
            os.environ[name] = value
        return "SSH_AUTH_SOCK" in os.environ

    def add_to_agent(self) -> bool:
        return self._run(["ssh-add", str(self.key_path)], check=False, interactive=True).ok

    def public_key(self) -> str:
        return self.pub_path.read_text(encoding="utf-8").strip()

    def test_connection(self, host: str = "github.com") -> bool:
        # GitHub answers with exit code 1 even on success; the message is what counts.
        r = self._run(
            ["ssh", "-T", "-o", "StrictHostKeyChecking=accept-new", f"git@{host}"],
            check=False,
        )
        return "successfully authenticated" in r.output

    def status(self) -> List[Tuple[str, str]]:
        rows: List[Tuple[str, str]] = []
        if self.exists():
            rows += [
                ("SSH Key", "Present"),
                ("Key Type", self.key_type() or "unknown"),
                ("Fingerprint", self.fingerprint() or "unknown"),
            ]
        else:
            rows.append(("SSH Key", "Not found"))
        rows.append(("SSH Config", "Present" if self.config_path.exists() else "Not configured"))
        return rows
