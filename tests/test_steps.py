"""
Tests for the per-stage steps, driven through fake tools.
"""

import os
from datetime import date
from pathlib import Path

import pytest

from kavow.errors import SetupAbort, SetupPaused, UserDeclined
from kavow.steps import (
    AppInstallationStep,
    CompleteStep,
    GitHubSetupStep,
    GitSetupStep,
    HomebrewStep,
    MiseSetupStep,
    WelcomeStep,
)

from conftest import FakeRunner, FakeUI


@pytest.fixture(autouse=True)
def restore_path(monkeypatch):
    # Steps prepend tool directories to PATH.
    monkeypatch.setenv("PATH", os.environ.get("PATH", ""))


def tool_on_path(monkeypatch, module, present=True):
    monkeypatch.setattr(f"kavow.lib.{module}.which", lambda name: f"/usr/local/bin/{name}" if present else None)


def test_welcome_declined(make_context):
    with pytest.raises(SetupPaused):
        WelcomeStep().run(make_context(FakeUI(confirms=[False]), FakeRunner()))


class TestHomebrewStep:
    def test_existing_install(self, make_context, monkeypatch, tmp_path, store):
        tool_on_path(monkeypatch, "brew")
        runner = FakeRunner(lambda argv: (0, str(tmp_path)) if argv[:2] == ["brew", "--prefix"] else (0, ""))

        HomebrewStep().run(make_context(FakeUI(), runner))

        assert store.flag("homebrew_installed")
        assert runner.ran("brew", "update")

    def test_install_declined(self, make_context, monkeypatch, store):
        tool_on_path(monkeypatch, "brew", present=False)
        ui = FakeUI(confirms=[False])
        with pytest.raises(UserDeclined):
            HomebrewStep().run(make_context(ui, FakeRunner()))
        assert ui.asked == ["Install Homebrew now?"]
        assert not store.flag("homebrew_installed")


def test_app_installation_failures_are_advisory(make_context, store):
    store.append("selected_apps", "firefox")
    runner = FakeRunner(lambda argv: (1, "Error: boom") if argv[0] == "brew" else (0, ""))
    ui = FakeUI(confirms=[False])

    AppInstallationStep().run(make_context(ui, runner))

    assert store.values("failed_apps") == ["firefox"]
    assert ui.asked == ["Retry failed installations now?"]


class TestMiseSetupStep:
    def test_installs_selected_languages(self, make_context, monkeypatch, store, tmp_path):
        tool_on_path(monkeypatch, "mise")
        store.append("selected_languages", "python")
        runner = FakeRunner(lambda argv: (1, "") if argv[:2] == ["mise", "where"] else (0, "2025.1.0"))

        MiseSetupStep().run(make_context(FakeUI(), runner))

        assert store.values("installed_languages") == ["python"]
        assert store.flag("mise_configured")
        assert (tmp_path / "mise" / "config.toml").is_file()
        assert runner.ran("mise", "install") == [["mise", "install", "python@3.13"]]

    def test_missing_mise_aborts(self, make_context, monkeypatch, store):
        tool_on_path(monkeypatch, "mise", present=False)
        monkeypatch.setattr("kavow.lib.mise.MISE_FALLBACK_BINS", ())
        with pytest.raises(SetupAbort) as exc:
            MiseSetupStep().run(make_context(FakeUI(), FakeRunner()))
        assert "mise.jdx.dev" in exc.value.remediation
        assert not store.flag("mise_configured")


def git_config(values):
    def handler(argv):
        if argv[:3] == ["git", "config", "--global"] and len(argv) == 4:
            return (0, values[argv[3]]) if argv[3] in values else (1, "")
        return (0, "git version 2.47.0")

    return handler


class TestGitSetupStep:
    def test_keeps_existing_identity(self, make_context, monkeypatch, store):
        tool_on_path(monkeypatch, "git")
        runner = FakeRunner(git_config({"user.name": "Ada", "user.email": "ada@example.com"}))
        ui = FakeUI(confirms=[False])

        GitSetupStep().run(make_context(ui, runner))

        assert ui.asked == ["Reconfigure Git settings?"]
        assert store.flag("git_configured")
        assert [c for c in runner.calls if len(c) == 5] == []

    def test_prompts_until_valid(self, make_context, monkeypatch, store):
        tool_on_path(monkeypatch, "git")
        runner = FakeRunner(git_config({}))
        ui = FakeUI(texts=["", "Ada Lovelace", "not-an-email", "ada@example.com"], confirms=[True])

        GitSetupStep().run(make_context(ui, runner))

        assert ["git", "config", "--global", "user.name", "Ada Lovelace"] in runner.calls
        assert ["git", "config", "--global", "user.email", "ada@example.com"] in runner.calls
        assert ["git", "config", "--global", "init.defaultBranch", "main"] in runner.calls
        assert "Name cannot be empty" in ui.said("error")
        assert "Please enter a valid email address" in ui.said("error")
        assert store.flag("git_configured")

    def test_missing_git_declined(self, make_context, monkeypatch):
        tool_on_path(monkeypatch, "git", present=False)
        with pytest.raises(UserDeclined):
            GitSetupStep().run(make_context(FakeUI(confirms=[False]), FakeRunner()))


class TestGitHubSetupStep:
    def test_authentication_declined(self, make_context, monkeypatch, store):
        tool_on_path(monkeypatch, "gh")
        runner = FakeRunner(lambda argv: (1, "") if argv[:3] == ["gh", "auth", "status"] else (0, ""))
        with pytest.raises(UserDeclined):
            GitHubSetupStep().run(make_context(FakeUI(confirms=[False]), runner))
        assert not store.flag("github_authenticated")

    def test_key_generated_and_uploaded(self, make_context, monkeypatch, store):
        tool_on_path(monkeypatch, "gh")
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")

        def handler(argv):
            if argv[:3] == ["git", "config", "--global"] and len(argv) == 4:
                return (0, "ada@example.com")
            if argv[0] == "ssh-keygen" and "-t" in argv:
                key = Path(argv[argv.index("-f") + 1])
                key.write_text("private")
                key.with_name(key.name + ".pub").write_text("ssh-ed25519 AAAA ada@example.com")
                return (0, "")
            if argv[0] == "ssh":
                return (1, "Hi ada! You've successfully authenticated, but GitHub does not provide shell access.")
            if argv[:3] == ["gh", "api", "user"]:
                return (0, "ada")
            return (0, "")

        runner = FakeRunner(handler)
        ui = FakeUI(confirms=[False])

        GitHubSetupStep().run(make_context(ui, runner))

        assert ui.asked[:3] == [
            "Re-authenticate with GitHub?",
            "Generate a new SSH key?",
            "Upload this SSH key to GitHub?",
        ]
        upload = runner.ran("gh", "ssh-key", "add")
        assert len(upload) == 1
        assert upload[0][-1] == f"kavow - {date.today().isoformat()}"
        assert ["git", "config", "--global", "url.git@github.com:.insteadOf", "https://github.com/"] in runner.calls
        assert store.flag("github_authenticated")
        assert store.flag("ssh_key_generated")
        assert "ssh-ed25519 AAAA ada@example.com" in ui.said("panel")


def test_complete_summary(make_context, monkeypatch, store):
    tool_on_path(monkeypatch, "brew", present=False)
    store.record_outcome("firefox", add_to="installed_apps", remove_from="failed_apps")
    store.record_outcome("python", add_to="installed_languages", remove_from="failed_languages")
    ui = FakeUI()

    CompleteStep().run(make_context(ui, FakeRunner()))

    assert store.flag("setup_complete")
    assert "Firefox" in ui.said("bullet")
    assert "Python" in ui.said("bullet")
    assert ui.tables[-1][0] == "Setup summary"


def test_complete_lists_manual_commands_for_failures(make_context, monkeypatch, store):
    tool_on_path(monkeypatch, "brew", present=False)
    store.record_outcome("firefox", add_to="failed_apps", remove_from="installed_apps")
    store.record_outcome("python", add_to="failed_languages", remove_from="installed_languages")
    ui = FakeUI()

    CompleteStep().run(make_context(ui, FakeRunner()))

    assert "2 item(s) failed; install them manually with:" in ui.said("warning")
    assert "brew install --cask firefox" in ui.said("bullet")
    assert "mise install python@3.13" in ui.said("bullet")
    assert not any("--recover" in m for _, m in ui.messages)
