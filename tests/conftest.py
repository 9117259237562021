"""
Pytest configuration and fixtures for kavow tests.

Nothing here touches the network or real package managers: external
commands go through FakeRunner and interaction through FakeUI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from kavow.config_store import ConfigStore
from kavow.context import SetupContext
from kavow.lib.brew import Homebrew
from kavow.lib.command import CmdResult
from kavow.lib.gh import GitHubCLI
from kavow.lib.git import Git
from kavow.lib.mise import Mise
from kavow.lib.ssh import SSHKeys
from kavow.settings import Settings
from kavow.state_store import StateStore


# ============================================================================
# Fakes
# ============================================================================


Reply = Tuple[int, str]


class FakeRunner:
    """Records every argv; answers through ``handler`` (default: success, no output)."""

    def __init__(self, handler: Optional[Callable[[List[str]], Reply]] = None) -> None:
        self.handler = handler or (lambda argv: (0, ""))
        self.calls: List[List[str]] = []

    def __call__(self, argv: Sequence[str], *, check: bool = True, **kwargs) -> CmdResult:
        argv = list(argv)
        self.calls.append(argv)
        returncode, stdout = self.handler(argv)
        return CmdResult(argv=argv, returncode=returncode, stdout=stdout, stderr="")

    def ran(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


class FakeUI:
    """Scripted answers, recorded output."""

    def __init__(
        self,
        confirms: Iterable[bool] = (),
        choices: Iterable[Iterable[str]] = (),
        texts: Iterable[str] = (),
        default_confirm: bool = True,
    ) -> None:
        self.confirms = list(confirms)
        self.choices = [list(c) for c in choices]
        self.texts = list(texts)
        self.default_confirm = default_confirm
        self.asked: List[str] = []
        self.menus: List[List[str]] = []
        self.messages: List[Tuple[str, str]] = []
        self.tables: List[Tuple[str, List[Tuple[str, str]]]] = []

    def confirm(self, prompt: str, default: bool = True) -> bool:
        self.asked.append(prompt)
        return self.confirms.pop(0) if self.confirms else self.default_confirm

    def choose_one(self, prompt: str, options: Sequence[str]) -> str:
        self.menus.append(list(options))
        return options[0]

    def choose_many(self, prompt: str, options: Sequence[str]) -> List[str]:
        self.menus.append(list(options))
        wanted = self.choices.pop(0) if self.choices else []
        return [o for o in options if o.split("|", 1)[0] in wanted]

    def prompt_text(self, prompt: str, default: Optional[str] = None) -> str:
        self.asked.append(prompt)
        return self.texts.pop(0) if self.texts else (default or "")

    def header(self, title: str, subtitle: str = "") -> None:
        self.messages.append(("header", title))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def bullets(self, items: Iterable[str], marker: str = "•") -> None:
        for item in items:
            self.messages.append(("bullet", item))

    def panel(self, text: str, title: str = "") -> None:
        self.messages.append(("panel", text))

    def table(self, rows: Sequence[Tuple[str, str]], title: str = "") -> None:
        self.tables.append((title, list(rows)))

    def step_complete(self, name: str) -> None:
        self.messages.append(("complete", name))

    def said(self, level: str) -> List[str]:
        return [text for lvl, text in self.messages if lvl == level]


class Clock:
    """Deterministic timestamps; each call moves one second forward."""

    def __init__(self) -> None:
        self.ticks = 0

    def __call__(self) -> str:
        self.ticks += 1
        return f"2026-01-01T00:00:{self.ticks:02d}Z"


# ============================================================================
# Catalog data
# ============================================================================


CATALOGS: Dict[str, str] = {
    "categories.conf": (
        "# key|display_name|description|order\n"
        "editors|Code Editors|Editors and IDEs|20\n"
        "browsers|Web Browsers|Browsers|10\n"
        "empty|Nothing Here|No members|30\n"
    ),
    "apps.conf": (
        "# key|display_name|category|install_action|description\n"
        "firefox|Firefox|browsers|brew install --cask firefox|Mozilla browser\n"
        "google-chrome|Google Chrome|browsers|brew install --cask google-chrome|Chromium browser\n"
        "\n"
        "visual-studio-code|Visual Studio Code|editors|brew install --cask visual-studio-code|Editor\n"
        "neovim|Neovim|editors|brew install neovim|Vim-based editor\n"
    ),
    "languages.conf": (
        "# key|display_name|description|version_spec\n"
        "python|Python|General purpose|3.13\n"
        "node|Node.js|JavaScript runtime|\n"
    ),
}


def write_catalogs(directory: Path, overrides: Optional[Dict[str, str]] = None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    files = dict(CATALOGS)
    files.update(overrides or {})
    for name, content in files.items():
        (directory / name).write_text(content, encoding="utf-8")
    return directory


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return write_catalogs(tmp_path / "data")


@pytest.fixture
def config(data_dir: Path) -> ConfigStore:
    return ConfigStore(data_dir)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def store(tmp_path: Path, clock: Clock) -> StateStore:
    s = StateStore(tmp_path / "state" / "state.json", clock=clock)
    s.initialize()
    return s


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def ui() -> FakeUI:
    return FakeUI()


@pytest.fixture
def make_context(tmp_path: Path, data_dir: Path, store: StateStore):
    def _make(ui: FakeUI, runner: FakeRunner, **settings) -> SetupContext:
        raw = {
            "state_dir": str(store.state_dir),
            "data_dir": str(data_dir),
            "mise_config_path": str(tmp_path / "mise" / "config.toml"),
            "ssh_key_path": str(tmp_path / "ssh" / "id_ed25519"),
        }
        raw.update(settings)
        resolved = Settings(raw=raw)
        return SetupContext(
            settings=resolved,
            store=store,
            ui=ui,
            config=ConfigStore(data_dir),
            brew=Homebrew(runner, sleep=lambda s: None),
            mise=Mise(runner),
            git=Git(runner),
            gh=GitHubCLI(runner),
            ssh=SSHKeys(resolved.ssh_key_path, runner),
        )

    return _make
