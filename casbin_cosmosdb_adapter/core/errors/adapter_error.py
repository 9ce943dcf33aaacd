"""Base adapter error class.

AdapterError is the base class for every error the adapter raises itself.
Unlike errors that flow through the system as data, these are raised: the
Casbin enforcer drives adapters through plain method calls and expects
failures as exceptions.

Errors coming from the Cosmos DB client during runtime operations are NOT
wrapped. They propagate to the caller unchanged.

Usage:
    from casbin_cosmosdb_adapter.core.errors import AdapterError
    from casbin_cosmosdb_adapter.core.enums import ErrorCode

    class MyError(AdapterError):
        pass  # Inherits code, message, details
"""

from typing import Any

from casbin_cosmosdb_adapter.core.enums import ErrorCode


class AdapterError(Exception):
    """Base adapter error.

    Attributes:
        code: Machine-readable error code (enum).
        message: Human-readable error message.
        details: Optional context for debugging.
    """

    def __init__(
        self,
        *,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def __str__(self) -> str:
        """String representation of error."""
        return f"{self.code.value}: {self.message}"
