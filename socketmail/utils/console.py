"""Centralised console management module"""

from typing import Optional

from rich.console import Console
from rich.markup import escape

_console: Optional[Console] = None


def get_console() -> Console:
    """Get the shared Console instance"""
    global _console

    if _console is None:
        _console = Console()

    return _console


def reset_console() -> None:
    """Reset the shared Console instance (for testing purposes)"""
    global _console
    _console = None


## Convenience Print Functions


def print_success(message: str, console: Optional[Console] = None) -> None:
    """Print a success message to the console"""
    output_console = console or get_console()
    output_console.print(f"[green]{escape(message)}[/]")


def print_error(message: str, console: Optional[Console] = None) -> None:
    """Print an error message to the console"""
    output_console = console or get_console()
    output_console.print(f"[red]{escape(message)}[/]")


def print_transcript_event(event, console: Optional[Console] = None) -> None:
    """Render one SMTP transcript line, green for sent and blue for received."""
    from socketmail.core.email.smtp.protocol import Direction

    output_console = console or get_console()
    text = "[REDACTED]" if event.sensitive else event.line.rstrip("\r\n")

    if event.direction is Direction.SENT:
        output_console.print(f"[bold green]Sending[/]: [green]{escape(text)}[/]")
    else:
        output_console.print(f"[bold blue]Received[/]: [blue]{escape(text)}[/]")
