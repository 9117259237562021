from __future__ import annotations

import logging

from ..context import SetupContext
from ..errors import SetupAbort
from ..installation import install_all
from ..lib.mise import MISE_INSTALL_URL
from ..pipeline import Stage

logger = logging.getLogger(__name__)


class MiseSetupStep:
    stage = Stage.MISE_SETUP

    def run(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        mise = ctx.mise
        ui.header("Mise Setup", "Installing mise version manager and programming languages")

        if mise.is_available():
            ui.info(f"Mise is already installed ({mise.version()})")
        else:
            ui.info("Installing mise version manager...")
            mise.install_self()

        if not mise.ensure_on_path():
            raise SetupAbort(
                "Failed to install mise",
                remediation=f"curl {MISE_INSTALL_URL} | sh",
            )
        ui.success("Mise installed successfully")

        if mise.write_config(ctx.settings.mise_config_path):
            ui.success("Mise configuration created")

        result = install_all(ctx.languages, ctx.store, ui)
        if not result.ok:
            logger.warning("Language installation finished with %s failure(s)", len(result.failed))

        ctx.store.set_value("mise_configured", True)
        ui.step_complete("Mise Setup")
