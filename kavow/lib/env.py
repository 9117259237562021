from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    home: Path = field(default_factory=Path.home)

    @property
    def state_dir(self) -> Path:
        return self.home / ".kavow"

    @property
    def settings_file(self) -> Path:
        return self.home / ".config" / "kavow" / "settings.yaml"

    @property
    def ssh_key(self) -> Path:
        return self.home / ".ssh" / "id_ed25519"

    @property
    def mise_config(self) -> Path:
        return self.home / ".config" / "mise" / "config.toml"

    @property
    def local_bin(self) -> Path:
        return self.home / ".local" / "bin"


PATHS = Paths()


def prepend_path(directory: str | os.PathLike[str]) -> bool:
    """Put a directory at the front of PATH for this process and its children."""

    d = str(directory)
    parts = os.environ.get("PATH", "").split(os.pathsep)
    if d in parts:
        return False
    os.environ["PATH"] = os.pathsep.join([d, *[p for p in parts if p]])
    return True
