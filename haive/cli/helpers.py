"""
Shared helpers and decorators for haive CLI commands.
"""

from __future__ import annotations

import functools
import sys
from typing import Any, Callable

import click

from haive.exceptions import HaiveError
from haive.utils.json_output import JSONOutput
from haive.utils.logging import error_exit, set_quiet, set_verbose


def verbose_callback(_: click.Context, __: click.Option, value: bool) -> bool:
    """Callback used by --verbose option on the root CLI."""
    if value:
        set_verbose(value)
    return value


def add_verbose_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to add the shared verbose flag to a command."""
    return click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose output (show INFO messages)",
        callback=verbose_callback,
        expose_value=False,
        is_eager=True,
    )(func)


def add_json_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to add a JSON output flag to a command."""
    return click.option(
        "--json",
        is_flag=True,
        default=False,
        help="Output as JSON format",
    )(func)


def _to_data(result: Any) -> Any:
    if hasattr(result, "to_dict"):
        return result.to_dict()
    if isinstance(result, list):
        return [_to_data(item) for item in result]
    return result


def handle_json_result(result: Any, json_enabled: bool) -> None:
    """Render structured results when JSON output is requested.

    Workflow results carrying an ``error`` are reported as failures with the
    completed part of the work in ``details``.
    """
    if not json_enabled or result is None:
        return
    data = _to_data(result)
    partial_error = data.get("error") if isinstance(data, dict) else None
    if partial_error:
        JSONOutput.print_json(JSONOutput.error(partial_error, error_code="PARTIAL_FAILURE", details=data))
    else:
        JSONOutput.print_json(JSONOutput.success("Operation completed", data))


def command_wrapper() -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator to provide consistent error reporting.

    The wrapped function must accept a ``json`` keyword argument. It returns
    the operation result; human-readable output is the function's own job.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            json_enabled = kwargs.get("json", False)
            if json_enabled:
                set_quiet(True)
            try:
                result = func(*args, **kwargs)
            except HaiveError as exc:
                if json_enabled:
                    JSONOutput.print_error(
                        exc.message,
                        error_code=exc.error_code,
                        details=exc.details,
                        json_output=True,
                    )
                    sys.exit(exc.exit_code)
                error_exit(exc.message, exit_code=exc.exit_code)
            except Exception as exc:
                if json_enabled:
                    JSONOutput.print_error(str(exc), error_code="command_error", json_output=True)
                    sys.exit(1)
                raise

            handle_json_result(result, json_enabled)
            if getattr(result, "error", None):
                if not json_enabled:
                    error_exit(result.error)
                sys.exit(1)
            return result

        return wrapper

    return decorator
