from __future__ import annotations

import logging
from typing import Tuple

from ..context import SetupContext
from ..errors import SetupAbort, UserDeclined
from ..lib.git import is_valid_email
from ..pipeline import Stage

logger = logging.getLogger(__name__)


class GitSetupStep:
    """Git identity is blocking; the extra settings and aliases are not."""

    stage = Stage.GIT_SETUP

    def _ensure_git(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        if ctx.git.is_available():
            ui.info(f"Git version {ctx.git.version()} detected")
            return
        ui.error("Git is not installed")
        if not ui.confirm("Install Git via Homebrew?"):
            raise UserDeclined("Git is required to continue", remediation="brew install git")
        if not ctx.brew.is_available():
            raise SetupAbort("Homebrew is required to install Git", remediation="kavow --recover")
        if not ctx.brew.install_package("git").ok:
            raise SetupAbort("Failed to install Git", remediation="brew install git")
        ctx.brew.setup_environment()
        if not ctx.git.is_available():
            raise SetupAbort(
                "Git installed but not found in PATH",
                remediation='export PATH="/opt/homebrew/bin:$PATH"',
            )
        ui.success("Git installed successfully")

    def _ask_identity(self, ctx: SetupContext) -> Tuple[str, str]:
        ui = ctx.ui
        while True:
            ui.info("Please provide your Git identity information:")
            name = ""
            while not name:
                name = ui.prompt_text("Full name")
                if not name:
                    ui.error("Name cannot be empty")
            email = ""
            while not is_valid_email(email):
                email = ui.prompt_text("Email address")
                if not is_valid_email(email):
                    ui.error("Please enter a valid email address")

            ui.info("Configuring Git with:")
            ui.bullets([f"Name: {name}", f"Email: {email}"])
            if ui.confirm("Is this information correct?"):
                return name, email

    def run(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        git = ctx.git
        self._ensure_git(ctx)
        ui.header("Git Configuration", "Setting up Git with your identity")

        if git.is_configured():
            name, email = git.identity()
            ui.info("Git is already configured:")
            ui.bullets([f"Name: {name}", f"Email: {email}"])
            if not ui.confirm("Reconfigure Git settings?", default=False):
                ctx.store.set_value("git_configured", True)
                ui.success("Using existing Git configuration")
                return

        name, email = self._ask_identity(ctx)
        git.set_identity(name, email)
        ui.success("Git identity configured successfully")

        failed = git.apply_defaults()
        if failed:
            ui.warning(f"Some Git settings could not be applied: {', '.join(failed)}")
        else:
            ui.success("Git settings configured")

        ctx.store.set_value("git_configured", True)
        ui.step_complete("Git Configuration")
