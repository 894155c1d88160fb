"""Rich-based output formatting utilities for ContextSmith CLI commands."""

import json
import os
import sys
from typing import Any

import rich.box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table


class MessagePrefixes:
    """Constants for consistent message prefixes in fallback mode."""

    INFO = "[INFO]"
    SUCCESS = "[SUCCESS]"
    WARN = "[WARN]"
    ERROR = "[ERROR]"
    DEBUG = "[DEBUG]"
    PROGRESS = "[PROGRESS]"


class RichOutputFormatter:
    """Terminal UI formatter using Rich, with a plain-text fallback."""

    def __init__(self, verbose: bool = False):
        """Initialize Rich output formatter.

        Args:
            verbose: Whether to enable verbose output
        """
        self.verbose = verbose
        self._terminal_compatible = self._check_terminal_compatibility()
        self.console = Console() if self._terminal_compatible else None

    def _check_terminal_compatibility(self) -> bool:
        """Check if terminal supports Rich formatting."""
        if os.environ.get("CONTEXTSMITH_NO_RICH"):
            return False
        if not sys.stdout.isatty():
            return False
        return os.environ.get("TERM", "") not in ("dumb", "unknown")

    def _safe_print(self, message: str, fallback_prefix: str = "") -> None:
        """Print with Rich or fall back to plain text."""
        if self.console is not None:
            try:
                self.console.print(message)
                return
            except Exception:
                pass

        if fallback_prefix:
            print(f"{fallback_prefix} {message}")
        else:
            print(message)

    def info(self, message: str) -> None:
        self._safe_print(f"[blue][INFO][/blue] {escape(message)}", MessagePrefixes.INFO)

    def success(self, message: str) -> None:
        self._safe_print(
            f"[green][SUCCESS][/green] {escape(message)}", MessagePrefixes.SUCCESS
        )

    def warning(self, message: str) -> None:
        self._safe_print(
            f"[yellow][WARN][/yellow] {escape(message)}", MessagePrefixes.WARN
        )

    def error(self, message: str) -> None:
        self._safe_print(f"[red][ERROR][/red] {escape(message)}", MessagePrefixes.ERROR)

    def verbose_info(self, message: str) -> None:
        """Print a verbose info message if verbose mode is enabled."""
        if self.verbose:
            self._safe_print(
                f"[cyan][DEBUG][/cyan] {escape(message)}", MessagePrefixes.DEBUG
            )

    def progress_indicator(self, message: str) -> None:
        self._safe_print(
            f"[cyan][PROGRESS][/cyan] {escape(message)}", MessagePrefixes.PROGRESS
        )

    def section_header(self, title: str) -> None:
        """Print a section header with consistent formatting."""
        if self.console is not None:
            self.console.print(Panel(title, style="bold cyan", padding=(0, 1)))
            return
        print(f"\n=== {title} ===\n")

    def bullet_list(self, items: list[str], indent: int = 1) -> None:
        for item in items:
            self._safe_print(f"{'  ' * indent}- {escape(item)}", f"{'  ' * indent}-")

    def json_output(self, data: dict[str, Any]) -> None:
        """Print data as formatted JSON.

        Plain text when not attached to a terminal, so output can be piped.
        """
        json_str = json.dumps(data, indent=2, default=str, ensure_ascii=False)
        if self.console is not None:
            self.console.print(Syntax(json_str, "json", theme="monokai"))
        else:
            print(json_str)

    def box_section(
        self, title: str, content: list[tuple[str, str]], width: int = 60
    ) -> None:
        """Print a bordered section with key-value pairs."""
        if self.console is None:
            print(f"\n{title}")
            for key, value in content:
                print(f"  {key}: {value}")
            return

        table = Table(title=title, show_header=False, box=rich.box.ROUNDED)
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Value", style="white")
        for key, value in content:
            if len(value) > width - len(key) - 5:
                value = value[: width - len(key) - 8] + "..."
            table.add_row(key, escape(value))
        self.console.print(table)

    def rows_table(
        self, title: str, headers: list[str], rows: list[list[str]]
    ) -> None:
        """Print a table with a header row."""
        if self.console is None:
            print(f"\n{title}")
            print(" | ".join(headers))
            for row in rows:
                print(" | ".join(row))
            return

        table = Table(title=title, show_header=True, box=rich.box.ROUNDED)
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self.console.print(table)
