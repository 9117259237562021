from __future__ import annotations

from ..context import SetupContext
from ..pipeline import Stage
from ..selection import LanguageSource, select


class LanguageSelectionStep:
    stage = Stage.LANGUAGE_SELECTION

    def run(self, ctx: SetupContext) -> None:
        select(LanguageSource(ctx.config), ctx.store, ctx.ui)
        ctx.ui.step_complete("Programming Language Selection")
