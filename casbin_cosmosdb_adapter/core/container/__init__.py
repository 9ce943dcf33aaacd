"""Container module - Centralized dependency injection.

    from casbin_cosmosdb_adapter.core.container import get_logger
"""

from casbin_cosmosdb_adapter.core.container.infrastructure import get_logger

__all__ = ["get_logger"]
