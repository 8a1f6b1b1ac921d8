"""
JSON output utilities for haive CLI.

Standardized envelopes for ``--json`` output so scripts and editor
integrations can branch on ``success`` and ``error_code``.
"""

import json
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .logging import log_error


class JSONOutput:
    """Standardized JSON output formatter for haive CLI commands."""

    @staticmethod
    def success(message: str, data: Optional[Any] = None) -> Dict[str, Any]:
        """Format a successful operation result."""
        result = {
            "success": True,
            "message": message,
            "timestamp": datetime.now().isoformat(),
        }
        if data is not None:
            result["data"] = data
        return result

    @staticmethod
    def error(message: str, error_code: Optional[str] = None,
              details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Format an error result."""
        result = {
            "success": False,
            "error": message,
            "timestamp": datetime.now().isoformat(),
        }
        if error_code:
            result["error_code"] = error_code
        if details:
            result["details"] = details
        return result

    @staticmethod
    def print_json(data: Union[Dict[str, Any], List[Any]]) -> None:
        """Print data as JSON to stdout."""
        print(json.dumps(data, indent=2, default=str))
        sys.stdout.flush()

    @staticmethod
    def print_error(message: str, error_code: Optional[str] = None,
                    details: Optional[Dict[str, Any]] = None, json_output: bool = False) -> None:
        """Print error message, optionally as JSON."""
        if json_output:
            JSONOutput.print_json(JSONOutput.error(message, error_code, details))
        else:
            log_error(message)
