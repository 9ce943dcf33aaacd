"""Core enums package.

Exports all core-level enums for convenient importing.

Usage:
    from casbin_cosmosdb_adapter.core.enums import ErrorCode, Environment
"""

from casbin_cosmosdb_adapter.core.enums.environment import Environment
from casbin_cosmosdb_adapter.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]
