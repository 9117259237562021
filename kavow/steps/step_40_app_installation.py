from __future__ import annotations

import logging

from ..context import SetupContext
from ..installation import install_all, retry_failed
from ..pipeline import Stage

logger = logging.getLogger(__name__)


class AppInstallationStep:
    """Install selected applications; failures are advisory."""

    stage = Stage.APP_INSTALLATION

    def run(self, ctx: SetupContext) -> None:
        target = ctx.apps
        result = install_all(target, ctx.store, ctx.ui)
        if not result.ok and ctx.ui.confirm("Retry failed installations now?", default=False):
            result = retry_failed(target, ctx.store, ctx.ui)
        if not result.ok:
            logger.warning("App installation finished with %s failure(s)", len(result.failed))
        ctx.ui.step_complete("Application Installation")
