from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .config_store import ConfigStore
from .errors import SelectionCancelled
from .state_store import StateStore
from .ui import UI

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    key: str
    label: str

    @property
    def option(self) -> str:
        return f"{self.key}|{self.label}"


@dataclass(frozen=True)
class CandidateGroup:
    title: str
    description: str
    candidates: Sequence[Candidate]


class SelectionSource(Protocol):
    kind: str
    noun: str
    selected_key: str
    title: str
    subtitle: str

    def groups(self) -> List[CandidateGroup]:
        ...

    def describe(self, key: str) -> str:
        ...


class AppSource:
    kind = "apps"
    noun = "applications"
    selected_key = "selected_apps"
    title = "Application Selection"
    subtitle = "Choose applications to install from each category"

    def __init__(self, config: ConfigStore) -> None:
        self.config = config

    def groups(self) -> List[CandidateGroup]:
        apps = self.config.applications()
        return [
            CandidateGroup(
                title=category.display_name,
                description=category.description,
                candidates=[Candidate(a.key, a.label) for a in apps if a.category == category.key],
            )
            for category in self.config.categories()
        ]

    def describe(self, key: str) -> str:
        return self.config.display_name(self.kind, key)


class LanguageSource:
    kind = "languages"
    noun = "programming languages"
    selected_key = "selected_languages"
    title = "Programming Language Selection"
    subtitle = "Choose programming languages to install via mise"

    def __init__(self, config: ConfigStore) -> None:
        self.config = config

    def groups(self) -> List[CandidateGroup]:
        languages = self.config.languages()
        return [
            CandidateGroup(
                title="Available programming languages",
                description="",
                candidates=[Candidate(lang.key, lang.label) for lang in languages],
            )
        ]

    def describe(self, key: str) -> str:
        return self.config.display_name(self.kind, key)


def select(source: SelectionSource, store: StateStore, ui: UI) -> List[str]:
    """Ask for choices group by group and append them to the state document.

    Each group's choices are persisted as soon as they are made, so a crash
    loses at most the group on screen. Choices are appended, never replaced:
    running the stage twice accumulates repeats.

    Raises SelectionCancelled if the user backs out of the final confirmation.
    """

    ui.header(source.title, source.subtitle)

    groups = source.groups()
    if not any(g.candidates for g in groups):
        ui.warning(f"No {source.noun} available for selection")
        return []

    chosen: List[str] = []
    for group in groups:
        if not group.candidates:
            ui.info(f"No {source.noun} available in {group.title}")
            continue

        ui.header(group.title, group.description)
        by_option = {c.option: c for c in group.candidates}
        picked = ui.choose_many(
            f"Select {source.noun} (Enter to continue):",
            [c.option for c in group.candidates],
        )
        for option in picked:
            candidate = by_option.get(option)
            if candidate is None:
                logger.warning("Ignoring unknown selection %r", option)
                continue
            store.append(source.selected_key, candidate.key)
            chosen.append(candidate.key)

    if not chosen:
        ui.warning(f"No {source.noun} selected for installation")
        if not ui.confirm(f"Continue without installing any {source.noun}?"):
            raise SelectionCancelled(f"{source.title} cancelled")
        return chosen

    ui.info(f"Selected {len(chosen)} {source.noun}:")
    ui.bullets(source.describe(key) for key in chosen)
    if not ui.confirm(f"Install these {source.noun}?"):
        raise SelectionCancelled(f"{source.title} cancelled")

    logger.info("Selected %s: %s", source.kind, ", ".join(chosen))
    return chosen
