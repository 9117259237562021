from __future__ import annotations

import logging

from ..context import SetupContext
from ..errors import SetupAbort, UserDeclined
from ..lib.brew import HOMEBREW_INSTALL_COMMAND
from ..pipeline import Stage

logger = logging.getLogger(__name__)


class HomebrewStep:
    stage = Stage.HOMEBREW_CHECK

    def _install(self, ctx: SetupContext) -> None:
        ctx.ui.warning("This will install Homebrew which may take several minutes")
        if not ctx.brew.install_homebrew():
            raise SetupAbort("Failed to install Homebrew", remediation=HOMEBREW_INSTALL_COMMAND)
        ctx.ui.success("Homebrew installed successfully")

    def _update(self, ctx: SetupContext) -> None:
        ctx.ui.info("Updating Homebrew...")
        if ctx.brew.update():
            ctx.ui.success("Homebrew updated successfully")
        else:
            ctx.ui.warning("Failed to update Homebrew, continuing with existing version")

    def run(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        brew = ctx.brew
        ui.header("Homebrew Setup", "Installing and configuring the Homebrew package manager")

        if brew.is_available():
            ui.success("Homebrew is already installed")
            if not brew.verify():
                ui.warning("Homebrew installation appears corrupted")
                if not ui.confirm("Reinstall Homebrew?"):
                    raise UserDeclined("Valid Homebrew installation required", remediation=HOMEBREW_INSTALL_COMMAND)
                self._install(ctx)
        else:
            ui.info("Homebrew is not installed")
            ui.info("Homebrew is required to install applications and tools")
            ui.panel(HOMEBREW_INSTALL_COMMAND, title="Installation command")
            if not ui.confirm("Install Homebrew now?"):
                raise UserDeclined("Homebrew is required to continue", remediation=HOMEBREW_INSTALL_COMMAND)
            self._install(ctx)

        brew.setup_environment()
        if not brew.verify():
            raise SetupAbort(
                "Homebrew is installed but not usable from this shell",
                remediation='eval "$(/opt/homebrew/bin/brew shellenv)"',
            )
        ctx.store.set_value("homebrew_installed", True)
        self._update(ctx)

        ui.step_complete("Homebrew Setup")
