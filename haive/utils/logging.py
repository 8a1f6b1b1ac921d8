"""
Logging and output utilities for haive CLI.

All console output goes through the shared rich console so that verbose and
quiet (JSON) modes are honoured in one place.
"""

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

# Initialize console for colored output
console = Console()
err_console = Console(stderr=True)

# Global verbose mode flag
_verbose_mode = False

# Global quiet mode flag - when True, only errors are printed (JSON output)
_quiet_mode = False


class Colors:
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    PURPLE = "purple"


def set_verbose(enabled: bool) -> None:
    """Set verbose mode for logging output."""
    global _verbose_mode
    _verbose_mode = enabled


def set_quiet(enabled: bool) -> None:
    """Set quiet mode - when enabled, don't print to stdout."""
    global _quiet_mode
    _quiet_mode = enabled


def is_quiet() -> bool:
    return _quiet_mode


def log_info(message: str) -> None:
    """Log an info message (only shown in verbose mode)."""
    if _verbose_mode and not _quiet_mode:
        console.print(f"[{Colors.BLUE}][INFO][/{Colors.BLUE}] {message}")


def log_success(message: str) -> None:
    """Log a success message."""
    if not _quiet_mode:
        console.print(f"[{Colors.GREEN}][SUCCESS][/{Colors.GREEN}] {message}")


def log_warning(message: str) -> None:
    """Log a warning message to stderr."""
    err_console.print(f"[{Colors.YELLOW}][WARNING][/{Colors.YELLOW}] {message}")


def log_error(message: str) -> None:
    """Log an error message to stderr."""
    err_console.print(f"[{Colors.RED}][ERROR][/{Colors.RED}] {message}")


def log_phase(message: str) -> None:
    """Log a phase message."""
    if not _quiet_mode:
        console.print(f"[{Colors.PURPLE}][PHASE][/{Colors.PURPLE}] {message}")


def print_plain(message: str) -> None:
    """Print plain text without any prefix."""
    if not _quiet_mode:
        console.print(message)


def show_progress(message: str) -> Progress:
    """Show a progress indicator for long-running operations."""
    return Progress(
        SpinnerColumn(),
        TextColumn(f"[{Colors.BLUE}]{message}[/{Colors.BLUE}]"),
        console=console,
        transient=True,
        disable=_quiet_mode,
    )


def error_exit(message: str, exit_code: int = 1) -> None:
    """Log an error and exit."""
    log_error(message)
    raise SystemExit(exit_code)
