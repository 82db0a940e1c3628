"""Interactive UI boundary and its rich console implementation."""

import logging
import re
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt


class StatusDisplay:
    """
    The single status widget shared between the poller and the UI.

    Only the remote-status poller writes to it; the last update wins.
    """

    def __init__(self, on_change: Optional[Callable[["StatusDisplay"], None]] = None):
        self.text = ""
        self.tooltip = ""
        self.visible = False
        self._on_change = on_change
        self._lock = threading.Lock()

    def update(self, text: str, tooltip: str = "") -> None:
        with self._lock:
            self.text = text
            self.tooltip = tooltip
            self.visible = True
        self._changed()

    def hide(self) -> None:
        with self._lock:
            was_visible = self.visible
            self.visible = False
        if was_visible:
            self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)


class UserInterface(ABC):
    """
    Request/response boundary between commands and the user.

    Every prompt returns None when the user dismisses it.
    """

    @abstractmethod
    def ask_text(self, prompt: str, placeholder: Optional[str] = None) -> Optional[str]:
        ...

    @abstractmethod
    def ask_secret(self, prompt: str) -> Optional[str]:
        ...

    @abstractmethod
    def pick_one(self, options: Sequence[str], placeholder: str = "") -> Optional[str]:
        ...

    @abstractmethod
    def pick_many(self, options: Sequence[str], placeholder: str = "") -> Optional[List[str]]:
        ...

    @abstractmethod
    def ask_folder(self, prompt: str) -> Optional[Path]:
        ...

    @abstractmethod
    def notify(self, message: str, actions: Sequence[str] = ()) -> Optional[str]:
        """Show an informational message; returns the chosen action, if any."""

    @abstractmethod
    def error(self, message: str, actions: Sequence[str] = ()) -> Optional[str]:
        ...

    def info(self, message: str) -> None:
        self.notify(message)

    @abstractmethod
    def progress(self, title: str):
        """Context manager shown while a long operation runs."""

    @abstractmethod
    def show_html(self, title: str, html: str) -> None:
        ...

    @abstractmethod
    def open_folder(self, path: Path) -> None:
        ...

    @abstractmethod
    def render_status(self, display: StatusDisplay) -> None:
        ...


def _slug(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-") or "view"


class ConsoleInterface(UserInterface):
    """UserInterface backed by a rich console."""

    def __init__(self, console: Optional[Console] = None, html_dir: Optional[Path] = None,
                 launch: Optional[Callable[[str], object]] = None):
        self.console = console or Console()
        self.html_dir = html_dir
        self._launch = launch
        self.logger = logging.getLogger('githelper.ui')

    def _ask(self, prompt: str, **kwargs) -> Optional[str]:
        try:
            answer = Prompt.ask(prompt, console=self.console, **kwargs)
        except (KeyboardInterrupt, EOFError):
            self.console.print()
            return None
        answer = (answer or "").strip()
        return answer or None

    def ask_text(self, prompt: str, placeholder: Optional[str] = None) -> Optional[str]:
        if placeholder:
            prompt = f"{prompt} [dim]({placeholder})[/dim]"
        return self._ask(prompt, default="", show_default=False)

    def ask_secret(self, prompt: str) -> Optional[str]:
        return self._ask(prompt, password=True, default="", show_default=False)

    def _print_options(self, options: Sequence[str], placeholder: str) -> None:
        if placeholder:
            self.console.print(f"[bold]{placeholder}[/bold]")
        for index, option in enumerate(options, start=1):
            self.console.print(f"  [cyan]{index}[/cyan]. {escape(option)}", markup=True, highlight=False)

    def pick_one(self, options: Sequence[str], placeholder: str = "") -> Optional[str]:
        if not options:
            return None
        self._print_options(options, placeholder)
        choices = [str(i) for i in range(1, len(options) + 1)]
        answer = self._ask("Select (blank to cancel)", choices=choices, show_choices=False,
                           default="", show_default=False)
        return options[int(answer) - 1] if answer else None

    def pick_many(self, options: Sequence[str], placeholder: str = "") -> Optional[List[str]]:
        if not options:
            return None
        self._print_options(options, placeholder)
        answer = self._ask("Select numbers, comma separated (blank to cancel)", default="", show_default=False)
        if not answer:
            return None
        picked = []
        for part in answer.split(","):
            part = part.strip()
            if part.isdigit() and 1 <= int(part) <= len(options) and options[int(part) - 1] not in picked:
                picked.append(options[int(part) - 1])
        return picked or None

    def ask_folder(self, prompt: str) -> Optional[Path]:
        answer = self.ask_text(prompt)
        return Path(answer).expanduser() if answer else None

    def notify(self, message: str, actions: Sequence[str] = ()) -> Optional[str]:
        self.console.print(f"[green]i[/green] {escape(message)}", highlight=False)
        if not actions:
            return None
        return self.pick_one(list(actions))

    def error(self, message: str, actions: Sequence[str] = ()) -> Optional[str]:
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}", highlight=False)
        if not actions:
            return None
        return self.pick_one(list(actions))

    @contextmanager
    def progress(self, title: str) -> Iterator[None]:
        with self.console.status(title):
            yield

    def show_html(self, title: str, html: str) -> None:
        html_dir = self.html_dir or Path.cwd()
        html_dir.mkdir(parents=True, exist_ok=True)
        target = html_dir / f"{_slug(title)}.html"
        target.write_text(html, encoding="utf-8")
        self.console.print(Panel(f"{title} written to {target}", expand=False))
        if self._launch is not None:
            self._launch(str(target))

    def open_folder(self, path: Path) -> None:
        self.console.print(f"Open this folder to continue: [bold]{path}[/bold]")
        if self._launch is not None:
            self._launch(str(path))

    def render_status(self, display: StatusDisplay) -> None:
        if display.visible:
            self.console.print(f"[yellow]{escape(display.text)}[/yellow] [dim]{escape(display.tooltip)}[/dim]")
        else:
            self.logger.debug("Status display hidden")
