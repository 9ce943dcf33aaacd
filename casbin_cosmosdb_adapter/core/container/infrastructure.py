"""Infrastructure dependency factories.

Application-scoped singletons for ambient services:
- Logging (structlog console adapter)

Adapters accept an explicit logger; when none is given they fall back to
get_logger() so every adapter in a process shares one configured logger.
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from casbin_cosmosdb_adapter.core.config import get_settings

if TYPE_CHECKING:
    from casbin_cosmosdb_adapter.domain.protocols.logger_protocol import (
        LoggerProtocol,
    )

# Identifies this library's lines in a host application's log stream
LOGGER_NAME = "casbin_cosmosdb_adapter"


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    Adapter selection is centralized here (composition root):
    - development: ConsoleAdapter (human-readable)
    - testing/ci/production: ConsoleAdapter (JSON)

    Returns:
        LoggerProtocol: Logger instance implementing the protocol.
    """
    from casbin_cosmosdb_adapter.infrastructure.logging.console_adapter import (
        ConsoleAdapter,
    )

    settings = get_settings()
    env = (
        settings.environment.value
        if hasattr(settings.environment, "value")
        else str(settings.environment)
    )

    use_json = env != "development"
    return ConsoleAdapter(
        use_json=use_json,
        level=settings.log_level,
        logger=LOGGER_NAME,
    )
