from __future__ import annotations

from dataclasses import dataclass

from .config_store import ConfigStore
from .lib.brew import Homebrew
from .lib.gh import GitHubCLI
from .lib.git import Git
from .lib.mise import Mise
from .lib.ssh import SSHKeys
from .settings import Settings
from .state_store import StateStore
from .targets import AppTarget, LanguageTarget
from .ui import UI


@dataclass(frozen=True)
class SetupContext:
    """Everything a stage needs; built once per run and handed to each step."""

    settings: Settings
    store: StateStore
    ui: UI
    config: ConfigStore
    brew: Homebrew
    mise: Mise
    git: Git
    gh: GitHubCLI
    ssh: SSHKeys

    @property
    def apps(self) -> AppTarget:
        return AppTarget(self.config, self.brew)

    @property
    def languages(self) -> LanguageTarget:
        return LanguageTarget(self.config, self.mise)


def build_context(settings: Settings, store: StateStore, ui: UI) -> SetupContext:
    return SetupContext(
        settings=settings,
        store=store,
        ui=ui,
        config=ConfigStore(settings.data_dir),
        brew=Homebrew(),
        mise=Mise(),
        git=Git(),
        gh=GitHubCLI(),
        ssh=SSHKeys(settings.ssh_key_path),
    )
