from __future__ import annotations

import argparse
import atexit
import logging
import signal
import sys
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence

import yaml

from . import __version__
from .context import SetupContext, build_context
from .errors import Interrupted, KavowError, SelectionCancelled, SetupPaused, StateCorrupt
from .lock import StateLock
from .logging_utils import configure_logging, log_run_header
from .pipeline import PipelineResult, Stage, StageController, Step, run_pipeline
from .recovery import RecoveryOrchestrator
from .settings import Settings, load_settings
from .state_store import StateStore
from .steps import (
    AppInstallationStep,
    AppSelectionStep,
    CompleteStep,
    GitHubSetupStep,
    GitSetupStep,
    HomebrewStep,
    LanguageSelectionStep,
    MiseSetupStep,
    WelcomeStep,
)
from .ui import UI, ConsoleUI

logger = logging.getLogger(__name__)

PROGRAM_NAME = "kavow"
RESUME_HINT = f"Run '{PROGRAM_NAME} --recover' to resume from the last completed stage."

ContextFactory = Callable[[Settings, StateStore, UI], SetupContext]


def build_steps() -> List[Step]:
    return [
        WelcomeStep(),
        HomebrewStep(),
        AppSelectionStep(),
        LanguageSelectionStep(),
        AppInstallationStep(),
        MiseSetupStep(),
        GitSetupStep(),
        GitHubSetupStep(),
        CompleteStep(),
    ]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description="Interactive, resumable macOS development environment setup.",
    )
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--recover", action="store_true", help="Resume from the last saved stage")
    mode.add_argument("--status", action="store_true", help="Show the current setup state and exit")
    mode.add_argument("--clean", action="store_true", help="Delete the saved setup state and exit")
    p.add_argument("--config", default=None, help="Path to a settings file (yaml)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


@contextmanager
def signals_raise_interrupted() -> Iterator[None]:
    """Turn SIGINT/SIGTERM into Interrupted so cleanup runs on the way out."""

    def _handler(signum: int, frame: Any) -> None:
        raise Interrupted(signum)

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@contextmanager
def held_lock(settings: Settings, ui: UI) -> Iterator[StateLock]:
    lock = StateLock(
        settings.lock_path,
        wait_seconds=settings.lock_wait_seconds,
        poll_seconds=settings.lock_poll_seconds,
        on_wait=ui.warning,
    )
    lock.acquire()
    atexit.register(lock.release)
    try:
        yield lock
    finally:
        lock.release()
        atexit.unregister(lock.release)


def show_status(ctx: SetupContext) -> None:
    """Read-only report; never creates the state document."""

    ui = ctx.ui
    ui.header("Setup Status")
    if not ctx.store.exists():
        ui.info("Setup has never been started")
        ui.table([("Current Stage", Stage.INIT.value)], title="Setup state")
    else:
        problems = ctx.store.validate()
        if problems:
            ui.warning("State file is invalid or corrupted")
            ui.bullets(problems)
        else:
            ui.table(ctx.store.summary(), title="Setup state")

    ui.table(ctx.git.status(), title="Git")
    ui.table(ctx.ssh.status(), title="SSH")
    ui.table(ctx.gh.status(), title="GitHub")


def clean_state(ctx: SetupContext) -> None:
    ui = ctx.ui
    if not ctx.store.exists():
        ui.info("No saved setup state to clean")
        return
    if not ui.confirm("Delete all saved setup state?", default=False):
        ui.info("Nothing was deleted")
        return
    ctx.store.clean()
    ui.success("Setup state cleaned")


def run_setup(ctx: SetupContext, steps: Sequence[Step]) -> PipelineResult:
    """A full run always starts from a fresh document."""

    ctx.store.clean()
    ctx.store.initialize()
    return run_pipeline(ctx=ctx, steps=steps, controller=StageController(ctx.store))


def run_recovery(ctx: SetupContext, steps: Sequence[Step]) -> Optional[PipelineResult]:
    controller = StageController(ctx.store)
    plan = RecoveryOrchestrator(ctx.store, ctx.ui, controller).resume()
    if plan is None:
        raise SetupPaused("Recovery cancelled", remediation=f"{PROGRAM_NAME} --recover")
    if plan.already_complete:
        return None
    return run_pipeline(ctx=ctx, steps=steps, controller=controller, stages=plan.stages)


def _past_init(store: StateStore) -> bool:
    try:
        point = StageController(store).recovery_point()
    except StateCorrupt:
        return False
    return point is not None and point is not Stage.INIT


def report_failure(e: KavowError, store: StateStore, ui: UI) -> None:
    if isinstance(e, SetupPaused):
        ui.info(str(e))
    elif isinstance(e, SelectionCancelled):
        ui.warning(str(e))
    else:
        ui.error(str(e))
    if e.remediation:
        ui.info(f"To fix this: {e.remediation}")
    if _past_init(store):
        ui.info(RESUME_HINT)


def main(
    argv: Optional[List[str]] = None,
    *,
    ui: Optional[UI] = None,
    context_factory: ContextFactory = build_context,
    steps: Optional[Sequence[Step]] = None,
) -> int:
    args = build_parser().parse_args(argv)
    ui = ui or ConsoleUI()

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        ui.error(f"Could not load settings: {e}")
        return 1

    configure_logging(log_path=str(settings.log_path), level=settings.log_level)
    log_run_header(__version__, list(argv if argv is not None else sys.argv[1:]))
    store = StateStore(settings.state_path)
    ctx = context_factory(settings, store, ui)

    if args.status:
        show_status(ctx)
        return 0

    try:
        with signals_raise_interrupted(), held_lock(settings, ui):
            if args.clean:
                clean_state(ctx)
            elif args.recover:
                run_recovery(ctx, steps or build_steps())
            else:
                run_setup(ctx, steps or build_steps())
    except KavowError as e:
        logger.error("Setup stopped: %s", e, exc_info=not isinstance(e, (SetupPaused, SelectionCancelled)))
        report_failure(e, store, ui)
        return e.exit_code
    except Exception:
        logger.exception("Setup failed")
        ui.error("Setup failed unexpectedly; see the log for details")
        if _past_init(store):
            ui.info(RESUME_HINT)
        raise
    return 0
