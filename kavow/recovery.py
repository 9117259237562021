from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import SetupAbort, StateCorrupt
from .pipeline import STAGE_ORDER, Stage, StageController, resume_plan
from .state_store import StateStore
from .ui import UI

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionPlan:
    """Stages left to run.

    ``restart`` means the state was reset and the whole sequence runs again;
    ``already_complete`` means there is nothing left to do.
    """

    stages: Tuple[Stage, ...]
    restart: bool = False
    already_complete: bool = False


class RecoveryOrchestrator:
    def __init__(self, store: StateStore, ui: UI, controller: Optional[StageController] = None) -> None:
        self.store = store
        self.ui = ui
        self.controller = controller or StageController(store)

    def _start_over(self) -> ExecutionPlan:
        archived = self.store.archive()
        if archived is None:
            self.store.initialize()
        else:
            self.ui.info(f"Previous state saved to {archived}")
        return ExecutionPlan(stages=STAGE_ORDER, restart=True)

    def _validate(self) -> Optional[ExecutionPlan]:
        problems = self.store.validate()
        if not problems:
            try:
                self.controller.current_stage()
                return None
            except StateCorrupt as e:
                problems = [str(e)]

        for problem in problems:
            logger.error("State validation: %s", problem)
        self.ui.error("State file is invalid or corrupted")
        self.ui.bullets(problems)
        if self.ui.confirm("Start fresh setup? (This will lose previous progress)", default=False):
            return self._start_over()
        raise SetupAbort("Cannot continue with invalid state", remediation="kavow --clean")

    def resume(self) -> Optional[ExecutionPlan]:
        """Work out what to run; None means the user chose not to continue."""

        ui = self.ui
        ui.header("Recovery Mode", "Resuming from the last saved stage")

        fresh = self._validate()
        if fresh is not None:
            return fresh

        stage = self.controller.current_stage()
        ui.table(self.store.summary(), title="Current setup state")

        if stage is Stage.COMPLETE:
            ui.success("Setup has already been completed")
            return ExecutionPlan(stages=(), already_complete=True)

        ui.info(f"Resuming from stage: {stage.value}")
        if not ui.confirm("Continue from this point?"):
            logger.info("Recovery declined at stage %s", stage.value)
            return None

        plan = resume_plan(stage)
        if plan is None:
            ui.warning("Not enough progress to resume, starting from the beginning")
            return self._start_over()
        logger.info("Recovery plan: %s", ", ".join(s.value for s in plan))
        return ExecutionPlan(stages=plan)
