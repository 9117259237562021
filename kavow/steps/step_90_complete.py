from __future__ import annotations

import logging
from typing import List

from ..context import SetupContext
from ..pipeline import Stage

logger = logging.getLogger(__name__)

NEXT_STEPS = (
    "Restart your terminal to pick up PATH changes",
    "Run 'mise ls' to see installed language versions",
    "Run 'gh repo list' to check GitHub access",
    "Re-run 'kavow --status' at any time to review the setup",
)


class CompleteStep:
    stage = Stage.COMPLETE

    def _names(self, ctx: SetupContext, kind: str, keys: List[str]) -> List[str]:
        return [ctx.config.display_name(kind, key) for key in keys]

    def run(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        store = ctx.store
        store.set_value("setup_complete", True)

        ui.header("Setup Complete", "Your Mac is ready for development")

        apps = self._names(ctx, "apps", store.values("installed_apps"))
        if apps:
            ui.info(f"Installed applications ({len(apps)}):")
            ui.bullets(apps)
        languages = self._names(ctx, "languages", store.values("installed_languages"))
        if languages:
            ui.info(f"Installed languages ({len(languages)}):")
            ui.bullets(languages)

        commands = [ctx.apps.remediation(key) for key in store.values("failed_apps")]
        commands += [ctx.languages.remediation(key) for key in store.values("failed_languages")]
        if commands:
            ui.warning(f"{len(commands)} item(s) failed; install them manually with:")
            ui.bullets(commands, marker="$")

        ui.table(store.summary(), title="Setup summary")

        if ctx.brew.is_available():
            ui.info("Cleaning up Homebrew caches...")
            if not ctx.brew.cleanup():
                logger.warning("brew cleanup failed")

        ui.info("Next steps:")
        ui.bullets(NEXT_STEPS)
        ui.step_complete("Setup")
