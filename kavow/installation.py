"""Install every selected item, recording each outcome as it happens.

One loop serves both applications and languages; what differs between them
lives behind :class:`InstallTarget`. A failed item is recorded and the batch
moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Protocol

from .errors import CommandError
from .state_store import StateStore
from .ui import UI

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SUCCESS = "success"
    ALREADY_PRESENT = "already_present"
    FAILURE = "failure"


@dataclass(frozen=True)
class InstallResult:
    outcome: Outcome
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILURE

    @classmethod
    def success(cls) -> "InstallResult":
        return cls(Outcome.SUCCESS)

    @classmethod
    def already_present(cls, detail: str = "") -> "InstallResult":
        return cls(Outcome.ALREADY_PRESENT, detail)

    @classmethod
    def failure(cls, detail: str) -> "InstallResult":
        return cls(Outcome.FAILURE, detail)


class InstallTarget(Protocol):
    """The kind-specific half of an installation batch."""

    kind: str
    noun: str
    selected_key: str
    installed_key: str
    failed_key: str

    def describe(self, key: str) -> str:
        """Display name for progress lines."""

    def is_satisfied(self, key: str) -> bool:
        """Already present on the machine; raises KeyError for unknown keys."""

    def apply(self, key: str) -> InstallResult:
        """Run the install action exactly once."""

    def after_install(self, key: str) -> None:
        """Post-install hook for freshly installed items."""

    def remediation(self, key: str) -> str:
        """A command the user can run by hand."""


@dataclass
class PartialResult:
    installed: List[str] = field(default_factory=list)
    already_present: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _install_one(target: InstallTarget, key: str) -> InstallResult:
    try:
        if target.is_satisfied(key):
            return InstallResult.already_present("satisfied before install")
    except KeyError:
        return InstallResult.failure(f"{key} is not in the {target.noun} catalog")
    except (CommandError, OSError, ValueError) as e:
        logger.warning("Could not check %s: %s", key, e)

    try:
        return target.apply(key)
    except (CommandError, OSError, ValueError) as e:
        return InstallResult.failure(str(e))


def install_all(target: InstallTarget, store: StateStore, ui: UI) -> PartialResult:
    """Install the selected items in selection order.

    Returns a result whose ``ok`` is False if at least one item failed; the
    caller decides whether that blocks anything.
    """

    selected = store.values(target.selected_key)
    result = PartialResult()
    if not selected:
        ui.info(f"No {target.noun} selected for installation")
        return result

    ui.header(f"Installing {target.noun.title()}", f"Installing {len(selected)} selected {target.noun}")

    for index, key in enumerate(selected, start=1):
        name = target.describe(key)
        ui.info(f"[{index}/{len(selected)}] {name}")

        outcome = _install_one(target, key)
        if outcome.ok:
            store.record_outcome(key, add_to=target.installed_key, remove_from=target.failed_key)
            result.installed.append(key)
            if outcome.outcome is Outcome.ALREADY_PRESENT:
                result.already_present.append(key)
                ui.success("Already installed")
            else:
                ui.success("Done")
                target.after_install(key)
            logger.info("%s %s: %s", target.kind, key, outcome.outcome.value)
        else:
            store.record_outcome(key, add_to=target.failed_key, remove_from=target.installed_key)
            result.failed.append(key)
            ui.warning(f"Issue detected: {outcome.detail.strip() or 'install failed'}")
            logger.warning("%s %s failed: %s", target.kind, key, outcome.detail.strip())

    show_summary(target, result, ui, selected_count=len(selected))
    return result


def show_summary(target: InstallTarget, result: PartialResult, ui: UI, *, selected_count: int) -> None:
    ui.header(f"{target.noun.title()} Installation Complete")
    if result.installed:
        ui.success(f"Installed {len(result.installed)} of {selected_count} {target.noun}")
    if result.failed:
        ui.warning(f"{len(result.failed)} {target.noun} had issues:")
        ui.bullets(target.describe(key) for key in result.failed)
        ui.info("These can be installed manually if needed:")
        ui.bullets((target.remediation(key) for key in result.failed), marker="$")


def retry_failed(target: InstallTarget, store: StateStore, ui: UI) -> PartialResult:
    """Re-select only the failed items and run the batch again."""

    failed = store.values(target.failed_key)
    if not failed:
        ui.info("No failed installations to retry")
        return PartialResult()

    ui.header("Retry Failed Installations", f"Attempting to install {len(failed)} failed {target.noun}")
    if not ui.confirm(f"Retry installing failed {target.noun}?"):
        return PartialResult(failed=failed)

    store.set_values(**{target.selected_key: list(failed), target.failed_key: []})
    return install_all(target, store, ui)
