"""Console logging adapter for adapter lifecycle and store events.

Writes one structured line per event to stdout via structlog:
- Development: colored key-value lines for a terminal
- Testing/CI/Production: one JSON object per line

Every line carries ``level`` and an ISO UTC ``timestamp``. Context passed at
construction (e.g. ``logger="casbin_cosmosdb_adapter"``) and context added
with bind() (the adapters bind ``database`` and ``collection``) is repeated
on every line. Exceptions passed as ``error=`` are flattened to
``error_type``/``error_message``; Cosmos errors also carry ``status_code``
when the caller supplies it.

Satisfies LoggerProtocol structurally (PEP 544), without inheriting it.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _error_context(error: Exception | None, context: dict[str, Any]) -> dict[str, Any]:
    if error is not None:
        context["error_type"] = type(error).__name__
        context["error_message"] = str(error)
    return context


class ConsoleAdapter:
    """Structured stdout logger.

    Args:
        use_json (bool): JSON lines when True, colored console when False.
        level (str): Minimum level name to emit (DEBUG, INFO, ...).
        **context: Key-values bound to every line from this logger.
    """

    def __init__(
        self, *, use_json: bool = False, level: str = "INFO", **context: Any
    ) -> None:
        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer()
            if use_json
            else structlog.dev.ConsoleRenderer(colors=True)
        )
        structlog.configure(
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                renderer,
            ],
            wrapper_class=structlog.make_filtering_bound_logger(
                logging.getLevelName(level.upper())
            ),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
            cache_logger_on_first_use=True,
        )

        self._logger = structlog.get_logger().bind(**context)

    def debug(self, message: str, /, **context: Any) -> None:
        self._logger.debug(message, **context)

    def info(self, message: str, /, **context: Any) -> None:
        self._logger.info(message, **context)

    def warning(self, message: str, /, **context: Any) -> None:
        self._logger.warning(message, **context)

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log a failed store operation, flattening ``error`` into the line."""
        self._logger.error(message, **_error_context(error, context))

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log a fatal provisioning failure, flattening ``error`` into the line."""
        self._logger.critical(message, **_error_context(error, context))

    def bind(self, **context: Any) -> ConsoleAdapter:
        """Return a new adapter that adds ``context`` to every line.

        The receiver is left unchanged.
        """
        bound = ConsoleAdapter.__new__(ConsoleAdapter)
        bound._logger = self._logger.bind(**context)
        return bound

    def with_context(self, **context: Any) -> ConsoleAdapter:
        """Alias for bind()."""
        return self.bind(**context)
