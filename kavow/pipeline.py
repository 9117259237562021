from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from .errors import KavowError, StateCorrupt
from .state_store import StateStore

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    INIT = "init"
    HOMEBREW_CHECK = "homebrew_check"
    APP_SELECTION = "app_selection"
    LANGUAGE_SELECTION = "language_selection"
    APP_INSTALLATION = "app_installation"
    MISE_SETUP = "mise_setup"
    GIT_SETUP = "git_setup"
    GITHUB_SETUP = "github_setup"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: Any) -> "Stage":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise StateCorrupt(f"Unknown stage: {value!r}") from None


STAGE_ORDER: Tuple[Stage, ...] = tuple(Stage)

NEXT_STAGE: Dict[Stage, Optional[Stage]] = {
    Stage.INIT: Stage.HOMEBREW_CHECK,
    Stage.HOMEBREW_CHECK: Stage.APP_SELECTION,
    Stage.APP_SELECTION: Stage.LANGUAGE_SELECTION,
    Stage.LANGUAGE_SELECTION: Stage.APP_INSTALLATION,
    Stage.APP_INSTALLATION: Stage.MISE_SETUP,
    Stage.MISE_SETUP: Stage.GIT_SETUP,
    Stage.GIT_SETUP: Stage.GITHUB_SETUP,
    Stage.GITHUB_SETUP: Stage.COMPLETE,
    Stage.COMPLETE: None,
}

# None: nothing worth keeping happened yet, restart from the top.
RESUME_PLANS: Dict[Stage, Optional[Tuple[Stage, ...]]] = {
    Stage.INIT: None,
    Stage.HOMEBREW_CHECK: None,
    Stage.APP_SELECTION: STAGE_ORDER[2:],
    Stage.LANGUAGE_SELECTION: STAGE_ORDER[3:],
    Stage.APP_INSTALLATION: STAGE_ORDER[4:],
    Stage.MISE_SETUP: STAGE_ORDER[5:],
    Stage.GIT_SETUP: STAGE_ORDER[6:],
    Stage.GITHUB_SETUP: STAGE_ORDER[7:],
    Stage.COMPLETE: (),
}


def resume_plan(stage: Stage) -> Optional[Tuple[Stage, ...]]:
    return RESUME_PLANS[stage]


class InvalidTransition(KavowError):
    pass


class StageController:
    """Linear stage machine persisted in the state document."""

    def __init__(self, store: StateStore) -> None:
        self.store = store

    def current_stage(self) -> Stage:
        if not self.store.exists():
            return Stage.INIT
        return Stage.parse(self.store.get("current_stage", Stage.INIT.value))

    def recovery_point(self) -> Optional[Stage]:
        if not self.store.exists():
            return None
        value = self.store.get("recovery_point") or ""
        return Stage.parse(value) if value else None

    def advance(self, to: Stage, checkpoint: Optional[Stage] = None) -> None:
        """Move to ``to`` (the current stage again, or its successor).

        Re-entering the current stage refreshes the checkpoint; re-entering
        ``complete`` changes nothing.
        """

        current = self.current_stage()
        if to is current and to is Stage.COMPLETE:
            logger.info("Stage already complete")
            return
        if to is not current and NEXT_STAGE[current] is not to:
            raise InvalidTransition(f"Cannot move from stage {current.value} to {to.value}")

        point = checkpoint or to
        self.store.set_values(current_stage=to.value, recovery_point=point.value)
        logger.info("Stage updated: %s (recovery point %s)", to.value, point.value)


class Step(Protocol):
    """One stage's work."""

    stage: Stage

    def run(self, ctx: Any) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_stages: List[Stage]


def run_pipeline(
    *,
    ctx: Any,
    steps: Sequence[Step],
    controller: StageController,
    stages: Optional[Sequence[Stage]] = None,
) -> PipelineResult:
    """Run steps in stage order, persisting the stage before each one starts.

    ``stages`` limits the run to a resume suffix; None runs everything.
    """

    wanted = list(stages) if stages is not None else list(STAGE_ORDER)
    by_stage = {step.stage: step for step in steps}
    missing = [s.value for s in wanted if s not in by_stage]
    if missing:
        raise KavowError(f"No step registered for stage(s): {', '.join(missing)}")

    ran: List[Stage] = []
    for stage in STAGE_ORDER:
        if stage not in wanted:
            continue
        controller.advance(stage)
        logger.info("Running stage %s", stage.value)
        by_stage[stage].run(ctx)
        ran.append(stage)

    return PipelineResult(ran_stages=ran)
