from __future__ import annotations

from ..context import SetupContext
from ..pipeline import Stage
from ..selection import AppSource, select


class AppSelectionStep:
    stage = Stage.APP_SELECTION

    def run(self, ctx: SetupContext) -> None:
        select(AppSource(ctx.config), ctx.store, ctx.ui)
        ctx.ui.step_complete("Application Selection")
