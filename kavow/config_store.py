"""Pipe-delimited catalogs: categories, applications and languages.

Line format (one record per line, ``#`` comments and blank lines ignored)::

    categories.conf   key|display_name|description|order
    apps.conf         key|display_name|category_key|install_action|description
    languages.conf    key|display_name|description|version_spec

Short lines are padded with empty strings. Records are immutable once loaded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from .errors import SetupAbort

logger = logging.getLogger(__name__)

DELIMITER = "|"
LATEST = "latest"

APPS_FILE = "apps.conf"
CATEGORIES_FILE = "categories.conf"
LANGUAGES_FILE = "languages.conf"


@dataclass(frozen=True)
class Category:
    key: str
    display_name: str
    description: str
    order: int


@dataclass(frozen=True)
class Application:
    key: str
    display_name: str
    category: str
    action: str
    description: str

    @property
    def label(self) -> str:
        return f"{self.display_name} - {self.description}" if self.description else self.display_name


@dataclass(frozen=True)
class Language:
    key: str
    display_name: str
    description: str
    version_spec: str

    @property
    def label(self) -> str:
        return f"{self.display_name} - {self.description}" if self.description else self.display_name

    @property
    def version(self) -> str:
        return self.version_spec or LATEST


R = TypeVar("R")


def is_comment_or_blank(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def parse_config_line(line: str, field_count: int) -> Optional[List[str]]:
    """Split one record into exactly ``field_count`` fields, or None for comments/blanks."""

    if is_comment_or_blank(line):
        return None
    fields = [f.strip() for f in line.rstrip("\r\n").split(DELIMITER)]
    if len(fields) < field_count:
        fields.extend([""] * (field_count - len(fields)))
    return fields[:field_count]


def _category(fields: Sequence[str]) -> Optional[Category]:
    key, display_name, description, order = fields
    try:
        order_value = int(order)
    except ValueError:
        logger.warning("Skipping category %r: order %r is not an integer", key, order)
        return None
    return Category(key=key, display_name=display_name or key, description=description, order=order_value)


def _application(fields: Sequence[str]) -> Application:
    key, display_name, category, action, description = fields
    return Application(
        key=key,
        display_name=display_name or key,
        category=category,
        action=action,
        description=description,
    )


def _language(fields: Sequence[str]) -> Language:
    key, display_name, description, version_spec = fields
    return Language(key=key, display_name=display_name or key, description=description, version_spec=version_spec)


def parse_records(
    lines: Iterable[str],
    field_count: int,
    factory: Callable[[Sequence[str]], Optional[R]],
) -> List[R]:
    records: List[R] = []
    for line in lines:
        fields = parse_config_line(line, field_count)
        if fields is None:
            continue
        if not fields[0]:
            logger.warning("Skipping record with empty key: %r", line.rstrip())
            continue
        record = factory(fields)
        if record is not None:
            records.append(record)
    return records


def find_record(records: Iterable[R], key: str) -> R:
    """First record whose key matches; KeyError if none does."""

    found = next((r for r in records if getattr(r, "key") == key), None)
    if found is None:
        raise KeyError(key)
    return found


class ConfigStore:
    """Read-only access to the three catalog files in a data directory."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)

    def _read_lines(self, name: str, description: str) -> List[str]:
        p = self.data_dir / name
        if not p.is_file():
            raise SetupAbort(
                f"{description} not found at: {p}",
                remediation="Reinstall kavow or point KAVOW_DATA_DIR at a directory with the catalog files.",
            )
        return p.read_text(encoding="utf-8").splitlines()

    def categories(self) -> List[Category]:
        records = parse_records(self._read_lines(CATEGORIES_FILE, "categories configuration"), 4, _category)
        # sorted() is stable: equal orders keep file order.
        return sorted(records, key=lambda c: c.order)

    def applications(self, category: Optional[str] = None) -> List[Application]:
        records = parse_records(self._read_lines(APPS_FILE, "applications configuration"), 5, _application)
        if category is None:
            return records
        return [a for a in records if a.category == category]

    # The generic name used by the selection pipeline.
    load = applications

    def languages(self) -> List[Language]:
        return parse_records(self._read_lines(LANGUAGES_FILE, "languages configuration"), 4, _language)

    def get_application(self, key: str) -> Application:
        return find_record(self.applications(), key)

    def get_language(self, key: str) -> Language:
        return find_record(self.languages(), key)

    def display_name(self, kind: str, key: str) -> str:
        """Best-effort display name for summaries; falls back to the key."""

        getter = self.get_application if kind == "apps" else self.get_language
        try:
            return getter(key).display_name
        except (KeyError, SetupAbort):
            return key
