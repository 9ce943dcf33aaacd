"""LoggerProtocol definition for structured logging.

The adapters log through this protocol so the backend stays swappable
(structlog in production, a Mock in tests). Implementations MUST emit
structured logs (message + key-value context) and MUST NOT log secrets.

Log Levels:
    - DEBUG: Per-page and per-document diagnostics
    - INFO: Provisioning and bulk load/save outcomes
    - WARNING: Skipped documents, rejected saves
    - ERROR: Store operation failed (error is re-raised)
    - CRITICAL: Adapter could not be constructed

Security:
    - NEVER log the Cosmos DB connection string or account key

Usage:
    from casbin_cosmosdb_adapter.core.container import get_logger

    logger = get_logger().bind(database="casbin", collection="casbin_rule")
    logger.info("policy_loaded", rules=42, filtered=False)
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters.

    Supports 5 standard log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    and context binding.
    """

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message.

        Args:
            message: Event name (snake_case; avoid f-strings, use context).
            **context: Structured key-value context fields.
        """
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message.

        Args:
            message: Event name (snake_case; avoid f-strings, use context).
            **context: Structured key-value context fields.
        """
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message.

        Args:
            message: Event name (snake_case; avoid f-strings, use context).
            **context: Structured key-value context fields.
        """
        ...

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log an error-level message with optional exception details.

        Args:
            message: Event name (snake_case; avoid f-strings, use context).
            error: Optional exception instance; implementation may include
                error_type and error_message fields.
            **context: Structured key-value context fields.
        """
        ...

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log a critical-level message.

        Used only when the adapter cannot be constructed at all.

        Args:
            message: Event name (snake_case; avoid f-strings, use context).
            error: Optional exception instance; implementation may include
                error_type and error_message fields.
            **context: Structured key-value context fields.
        """
        ...

    def bind(self, **context: Any) -> "LoggerProtocol":
        """Return new logger with permanently bound context.

        Original logger instance remains unchanged (immutable pattern).

        Args:
            **context: Context to bind to all future logs.

        Returns:
            New logger instance with bound context.

        Example:
            adapter_logger = logger.bind(database="casbin", collection="rules")
            adapter_logger.info("cosmos_collection_created")
        """
        ...

    def with_context(self, **context: Any) -> "LoggerProtocol":
        """Alias for bind() - return logger with bound context.

        Args:
            **context: Context to bind to all future logs.

        Returns:
            New logger instance with bound context.
        """
        ...
