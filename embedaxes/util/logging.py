"""
Structured logging for the embedding axis pipeline.
"""

import logging
import os
from typing import Any, Dict


def _truncate(value: Any, limit: int = 50) -> Any:
    if isinstance(value, str) and len(value) > limit:
        return value[:limit] + "..."
    return value


class StructuredLogger:
    """Structured logger for pipeline stages, fetches and store operations."""

    def __init__(self, name: str = "embedaxes"):
        self.logger = logging.getLogger(name)
        debug = os.getenv("DEBUG", "false").lower() == "true"
        self.logger.setLevel(logging.DEBUG if debug else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            sanitized = {k: _truncate(v) for k, v in details.items()}
            message += f", Details: {sanitized}"

        self.logger.log(level, message)

    def log_stage(self, stage: str, status: str, details: Dict[str, Any] = None):
        """Log a workflow stage transition."""
        level = logging.ERROR if status == "failed" else logging.INFO
        self.log_operation(f"workflow.{stage}", status, details, level=level)

    def log_candidate_call(self, call_index: int, total: int, returned: int, error: str = None):
        """Log one settled completion call of a candidate generation run."""
        details = {"call": f"{call_index}/{total}", "returned": returned}
        if error is not None:
            details["error"] = error
            self.log_operation("candidates.call", "failed", details, level=logging.WARNING)
        else:
            self.log_operation("candidates.call", "success", details, level=logging.DEBUG)

    def log_fetch_item(self, text: str, status: str, completed: int, total: int, error: str = None):
        """Log one settled vector fetch."""
        details = {"text": text, "progress": f"{completed}/{total}"}
        if error is not None:
            details["error"] = error
        level = logging.DEBUG if status == "success" else logging.WARNING
        self.log_operation("fetch.item", status, details, level=level)

    def log_fallback(self, tier: str, details: Dict[str, Any] = None):
        """Log which tier of the cache-refresh fallback ladder was used."""
        level = logging.INFO if tier in ("matched", "substitute") else logging.WARNING
        self.log_operation("refresh.fallback", tier, details, level=level)

    def log_store_operation(self, operation: str, key: str, status: str = "success", **details):
        """Log a durable store operation."""
        log_details = {"key": key}
        log_details.update(details)
        self.log_operation(f"store.{operation}", status, log_details, level=logging.DEBUG)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
