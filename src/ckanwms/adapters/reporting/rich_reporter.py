"""Rich-based error reporter for terminal output."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.text import Text


if TYPE_CHECKING:
    from ckanwms.core.exceptions import CkanWmsError


class RichErrorReporter:
    """Error reporter that prints failures as a panel on the terminal.

    The panel title is the error's title when it has one (GroupLoadError
    does), and the body holds the message followed by the recovery hint.

    Example:
        group = CkanGroup.from_definition(definition, error_reporter=RichErrorReporter())
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the reporter.

        Args:
            console: Console to print to. Defaults to stderr.
        """
        self._console = console or Console(stderr=True)
        self.reported: list[CkanWmsError] = []

    def report(self, error: CkanWmsError) -> None:
        """Print the error and remember it."""
        self.reported.append(error)

        body = Text(str(error))
        hint = error.recovery_hint
        if hint:
            body.append("\n\n")
            body.append(hint, style="dim")

        title = getattr(error, "title", None) or type(error).__name__
        self._console.print(Panel(body, title=title, border_style="red"))
