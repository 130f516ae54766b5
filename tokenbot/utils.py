"""Console output helpers for TokenBot.

All operator output goes through a ``Console``. The module-level helpers
write to the default console, which tests replace with ``use_console``.
"""

import sys
from typing import Callable, Dict, List, Optional, TextIO, Tuple, Union

# ANSI color codes
RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[31m"
YELLOW = "\033[33m"
GREEN = "\033[32m"
BLUE = "\033[34m"
MAGENTA = "\033[35m"
CYAN = "\033[36m"

RULE = "=" * 50


class Console:
    """Output sink with optional ANSI coloring."""

    def __init__(self, stream: Optional[TextIO] = None, color: bool = True) -> None:
        self._stream = stream
        self.color = color

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so pytest's capsys sees the output
        return self._stream if self._stream is not None else sys.stdout

    def print(self, message: str = "", end: str = "\n") -> None:
        self.stream.write(f"{message}{end}")
        self.stream.flush()

    def style(self, message: str, *codes: str) -> str:
        if not self.color:
            return message
        return f"{''.join(codes)}{message}{RESET}"

    def error(self, message: str) -> None:
        """Print an error message in red."""
        self.print(f"{self.style('[error]', RED)} {message}")

    def warn(self, message: str) -> None:
        """Print a warning message in yellow."""
        self.print(f"{self.style('[warn]', YELLOW)} {message}")

    def info(self, message: str) -> None:
        """Print an info message in blue."""
        self.print(f"{self.style('[info]', BLUE)} {message}")

    def success(self, message: str) -> None:
        """Print a success message in green."""
        self.print(f"{self.style('[success]', GREEN)} {message}")

    def result(self, message: str) -> None:
        """Print a result message in cyan."""
        self.print(f"{self.style('[result]', CYAN)} {message}")


_console = Console()


def get_console() -> Console:
    """Return the default console."""
    return _console


def use_console(console: Console) -> Console:
    """Replace the default console and return the previous one."""
    global _console
    previous = _console
    _console = console
    return previous


def print_banner() -> None:
    """Print the TokenBot banner."""
    banner = r""" _____     _              ____        _
|_   _|__ | | _____ _ __ | __ )  ___ | |_
  | |/ _ \| |/ / _ \ '_ \|  _ \ / _ \| __|
  | | (_) |   <  __/ | | | |_) | (_) | |_
  |_|\___/|_|\_\___|_| |_|____/ \___/ \__|
"""
    _console.print(banner)
    _console.print("TokenBot (TBOT) deployment toolkit for Ethereum, Base and Solana.")


def section_header(title: str) -> None:
    """Print a section header."""
    _console.print()
    _console.print(f"--- {title} ---")


def section_footer(message: str) -> None:
    """Print a section footer."""
    _console.print()
    _console.print(message)


def rule(title: Optional[str] = None) -> None:
    """Print a horizontal rule, optionally around a title."""
    _console.print()
    _console.print(RULE)
    if title:
        _console.print(title)
        _console.print(RULE)


def echo(message: str = "") -> None:
    """Print a plain line."""
    _console.print(message)


def error(message: str) -> None:
    """Print an error message in red."""
    _console.error(message)


def warn(message: str) -> None:
    """Print a warning message in yellow."""
    _console.warn(message)


def info(message: str) -> None:
    """Print an info message in blue."""
    _console.info(message)


def success(message: str) -> None:
    """Print a success message in green."""
    _console.success(message)


def result(message: str) -> None:
    """Print a result message in cyan."""
    _console.result(message)


def bold(message: str) -> str:
    """Return a bold formatted message."""
    return _console.style(message, BOLD)


def dim(message: str) -> str:
    """Return a dim formatted message."""
    return _console.style(message, DIM)


def bold_yellow(message: str) -> str:
    """Return a bold yellow formatted message."""
    return _console.style(message, BOLD, YELLOW)


def bold_red(message: str) -> str:
    """Return a bold red formatted message."""
    return _console.style(message, BOLD, RED)


def bold_green(message: str) -> str:
    """Return a bold green formatted message."""
    return _console.style(message, BOLD, GREEN)


def bold_cyan(message: str) -> str:
    """Return a bold cyan formatted message."""
    return _console.style(message, BOLD, CYAN)


def bold_blue(message: str) -> str:
    """Return a bold blue formatted message."""
    return _console.style(message, BOLD, BLUE)


def bold_magenta(message: str) -> str:
    """Return a bold magenta formatted message."""
    return _console.style(message, BOLD, MAGENTA)


def print_menu(
    title: str,
    items: Union[Dict[str, str], List[Tuple[str, str]]],
    item_formatter: Callable[[str], str] | None = None,
    title_formatter: Callable[[str], str] | None = None,
) -> None:
    """Print a formatted menu.

    Args:
        title: Menu title
        items: Dictionary mapping keys to labels, or list of (key, label) tuples
        item_formatter: Optional function to format menu items (default: bold)
        title_formatter: Optional function to format title (default: no formatting)
    """
    _console.print()
    if title_formatter:
        _console.print(title_formatter(f"=== {title} ==="))
    else:
        _console.print(f"=== {title} ===")

    # Default formatter makes items bold
    if item_formatter is None:
        item_formatter = bold

    # Handle both dict and list inputs
    if isinstance(items, dict):
        items_list = items.items()
    else:
        items_list = items

    for key, label in items_list:
        _console.print(f"{key}. {item_formatter(label)}")

    _console.print()
