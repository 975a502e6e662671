"""Structured logging module with JSON output support."""

import json
import sys
import traceback
from datetime import UTC, datetime
from typing import Any

from ninjascope.utils.request_context import get_current_trace


class StructuredLogger:
    """Logger that writes one JSON object per line to stdout."""

    def __init__(self, component: str):
        """
        Initialize the structured logger.

        Args:
            component: Name of the component using this logger
        """
        self.component = component

    def _format_log_entry(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> str:
        """
        Format a log entry as JSON.

        The current trace id, when one is set, is merged into the context.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            message: Log message
            context: Optional context fields
            exception: Optional exception to describe

        Returns:
            JSON-formatted log entry
        """
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level,
            "component": self.component,
            "message": message,
        }

        trace_id = get_current_trace()
        if trace_id and not (context and "trace_id" in context):
            context = {"trace_id": trace_id, **(context or {})}

        if context:
            entry["context"] = context

        if exception is not None:
            entry["exception"] = {
                "type": type(exception).__name__,
                "message": str(exception),
                "stack_trace": "".join(
                    traceback.format_exception(type(exception), exception, exception.__traceback__)
                ),
            }

        return json.dumps(entry, default=str)

    def _write_log(self, log_entry: str) -> None:
        try:
            print(log_entry, file=sys.stdout)
        except Exception as e:
            print(f"Failed to write log: {e}", file=sys.stderr)

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Log a debug message."""
        self._write_log(self._format_log_entry("DEBUG", message, context))

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Log an info message."""
        self._write_log(self._format_log_entry("INFO", message, context))

    def warning(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """Log a warning message, optionally describing the exception that caused it."""
        self._write_log(self._format_log_entry("WARNING", message, context, exception))

    def error(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """Log an error message with optional exception details."""
        self._write_log(self._format_log_entry("ERROR", message, context, exception))

    def critical(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """Log a critical message with optional exception details."""
        self._write_log(self._format_log_entry("CRITICAL", message, context, exception))
