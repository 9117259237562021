"""
Tests for resuming an interrupted setup.
"""

import pytest

from kavow.errors import SetupAbort
from kavow.pipeline import STAGE_ORDER, Stage
from kavow.recovery import RecoveryOrchestrator
from kavow.state_store import StateStore

from conftest import FakeUI


def test_resume_at_git_setup(store):
    store.set_values(current_stage="git_setup", recovery_point="git_setup")
    ui = FakeUI(confirms=[True])

    plan = RecoveryOrchestrator(store, ui).resume()

    assert plan.stages == (Stage.GIT_SETUP, Stage.GITHUB_SETUP, Stage.COMPLETE)
    assert not plan.restart
    assert ui.asked == ["Continue from this point?"]
    assert "Resuming from stage: git_setup" in ui.said("info")
    assert ui.tables and dict(ui.tables[0][1])["Current Stage"] == "git_setup"


def test_declining_returns_none_and_changes_nothing(store):
    store.set_values(current_stage="mise_setup", recovery_point="mise_setup")
    before = store.read()
    assert RecoveryOrchestrator(store, FakeUI(confirms=[False])).resume() is None
    assert store.read() == before


def test_complete_is_a_summary_only(store):
    store.set_values(current_stage="complete", recovery_point="complete", setup_complete=True)
    before = store.read()
    ui = FakeUI()

    plan = RecoveryOrchestrator(store, ui).resume()

    assert plan.already_complete
    assert plan.stages == ()
    assert ui.asked == []
    assert store.read() == before


@pytest.mark.parametrize("stage", ["init", "homebrew_check"])
def test_early_stages_restart_from_the_top(store, stage):
    store.set_values(current_stage=stage, recovery_point=stage)
    store.append("selected_apps", "firefox")

    plan = RecoveryOrchestrator(store, FakeUI(confirms=[True])).resume()

    assert plan.restart
    assert plan.stages == STAGE_ORDER
    assert store.get("current_stage") == "init"
    assert store.values("selected_apps") == []


def test_corrupt_document_start_fresh(store):
    store.path.write_text("{broken")
    ui = FakeUI(confirms=[True])

    plan = RecoveryOrchestrator(store, ui).resume()

    assert plan.restart
    assert ui.asked == ["Start fresh setup? (This will lose previous progress)"]
    assert store.validate() == []
    archived = list(store.history_dir.glob("state_*.json"))
    assert len(archived) == 1
    assert archived[0].read_text() == "{broken"


def test_corrupt_document_declined_aborts(store):
    store.update(lambda s: s.pop("version"))
    with pytest.raises(SetupAbort) as exc:
        RecoveryOrchestrator(store, FakeUI(confirms=[False])).resume()
    assert "Cannot continue with invalid state" in str(exc.value)
    assert "version" not in store.read()


def test_unknown_stage_is_treated_as_corrupt(store):
    store.set_value("current_stage", "deploy_rockets")
    ui = FakeUI(confirms=[False])
    with pytest.raises(SetupAbort):
        RecoveryOrchestrator(store, ui).resume()
    assert any("deploy_rockets" in b for b in ui.said("bullet"))


def test_missing_document_offers_fresh_start(tmp_path):
    store = StateStore(tmp_path / "state.json")
    plan = RecoveryOrchestrator(store, FakeUI(confirms=[True])).resume()
    assert plan.restart
    assert store.exists()
