from __future__ import annotations

import logging

from ..context import SetupContext
from ..errors import SetupPaused
from ..lib import preflight
from ..pipeline import Stage

logger = logging.getLogger(__name__)

WELCOME_ITEMS = (
    "Homebrew package manager",
    "Applications organized by category",
    "Programming languages via mise",
    "Git version control system",
    "SSH key generation and GitHub setup",
)


class WelcomeStep:
    stage = Stage.INIT

    def _preflight(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        settings = ctx.settings
        ui.header("Preflight Checks", "Verifying system requirements")

        ui.info("Checking macOS compatibility...")
        preflight.guard_macos()
        preflight.guard_macos_version()

        ui.info("Checking user permissions...")
        preflight.guard_not_root()

        ui.info("Checking system architecture...")
        preflight.guard_architecture()

        ui.info("Checking Xcode Command Line Tools...")
        preflight.guard_xcode_tools()

        ui.info("Checking internet connectivity...")
        preflight.guard_internet_connection(
            settings.preflight_urls, timeout=settings.network_timeout_seconds
        )

        ui.info("Checking Homebrew installations...")
        preflight.guard_homebrew_conflicts(
            ctx.brew.installations(), lambda prompt: ui.confirm(prompt, default=False)
        )

        ui.info("Checking disk space...")
        preflight.guard_disk_space(settings.required_disk_gb)

        ui.success("All preflight checks passed")
        ui.step_complete("Preflight Checks")

    def run(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        ui.header("Welcome to kavow", "Transform your Mac into a development powerhouse")
        ui.info("This script will guide you through installing and configuring:")
        ui.bullets(WELCOME_ITEMS)
        ui.warning("This script will make system modifications")

        if not ui.confirm("Continue with the setup?"):
            raise SetupPaused("Setup cancelled by user")

        self._preflight(ctx)
