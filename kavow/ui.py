from __future__ import annotations

import re
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table


class UI(Protocol):
    """What the setup needs from a terminal."""

    def confirm(self, prompt: str, default: bool = True) -> bool:
        ...

    def choose_one(self, prompt: str, options: Sequence[str]) -> str:
        ...

    def choose_many(self, prompt: str, options: Sequence[str]) -> List[str]:
        ...

    def prompt_text(self, prompt: str, default: Optional[str] = None) -> str:
        ...

    def header(self, title: str, subtitle: str = "") -> None:
        ...

    def info(self, message: str) -> None:
        ...

    def success(self, message: str) -> None:
        ...

    def warning(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def bullets(self, items: Iterable[str], marker: str = "•") -> None:
        ...

    def panel(self, text: str, title: str = "") -> None:
        ...

    def table(self, rows: Sequence[Tuple[str, str]], title: str = "") -> None:
        ...

    def step_complete(self, name: str) -> None:
        ...


_TOKEN_SPLIT = re.compile(r"[\s,]+")


def parse_multi_selection(text: str, count: int) -> List[int]:
    """Turn "1 3-5, 7" / "all" / "" into sorted zero-based indexes.

    Raises ValueError on anything out of range or unparseable.
    """

    text = text.strip().lower()
    if not text or text == "none":
        return []
    if text in {"all", "*"}:
        return list(range(count))

    picked: set[int] = set()
    for token in _TOKEN_SPLIT.split(text):
        if not token:
            continue
        if "-" in token:
            start_s, _, end_s = token.partition("-")
            start, end = int(start_s), int(end_s)
            if start > end:
                raise ValueError(f"bad range: {token}")
            numbers = range(start, end + 1)
        else:
            numbers = range(int(token), int(token) + 1)
        for n in numbers:
            if not 1 <= n <= count:
                raise ValueError(f"{n} is not between 1 and {count}")
            picked.add(n - 1)
    return sorted(picked)


class ConsoleUI:
    """rich-backed implementation of :class:`UI`."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def confirm(self, prompt: str, default: bool = True) -> bool:
        return Confirm.ask(f"[bold]{prompt}[/]", default=default, console=self.console)

    def _numbered(self, options: Sequence[str]) -> None:
        for i, option in enumerate(options, start=1):
            self.console.print(f"  [cyan]{i:>2}[/] {option}")

    def choose_one(self, prompt: str, options: Sequence[str]) -> str:
        if not options:
            raise ValueError("choose_one needs at least one option")
        self.console.print(f"[bold]{prompt}[/]")
        self._numbered(options)
        choices = [str(i) for i in range(1, len(options) + 1)]
        picked = Prompt.ask("Choice", choices=choices, default="1", console=self.console)
        return options[int(picked) - 1]

    def choose_many(self, prompt: str, options: Sequence[str]) -> List[str]:
        if not options:
            return []
        self.console.print(f"[bold]{prompt}[/]")
        self._numbered(options)
        while True:
            answer = Prompt.ask(
                "Numbers (e.g. 1 3-4), 'all', or Enter for none",
                default="",
                show_default=False,
                console=self.console,
            )
            try:
                indexes = parse_multi_selection(answer, len(options))
            except ValueError as e:
                self.error(f"Invalid selection: {e}")
                continue
            return [options[i] for i in indexes]

    def prompt_text(self, prompt: str, default: Optional[str] = None) -> str:
        if default is None:
            return Prompt.ask(prompt, console=self.console).strip()
        return Prompt.ask(prompt, default=default, console=self.console).strip()

    def header(self, title: str, subtitle: str = "") -> None:
        self.console.print()
        self.console.rule(f"[bold cyan]{title}[/]")
        if subtitle:
            self.console.print(f"[dim]{subtitle}[/]", justify="center")
        self.console.print()

    def info(self, message: str) -> None:
        self.console.print(f"[blue]ℹ[/] {message}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/] {message}")

    def bullets(self, items: Iterable[str], marker: str = "•") -> None:
        for item in items:
            self.console.print(f"  {marker} {item}", highlight=False)

    def panel(self, text: str, title: str = "") -> None:
        self.console.print(Panel(text, title=title or None, border_style="cyan", padding=(1, 2)))

    def table(self, rows: Sequence[Tuple[str, str]], title: str = "") -> None:
        t = Table(title=title or None, show_header=False, box=None)
        t.add_column(style="bold")
        t.add_column()
        for label, value in rows:
            t.add_row(label, value)
        self.console.print(t)

    def step_complete(self, name: str) -> None:
        self.console.print(f"[bold green]✓ {name} complete[/]")
