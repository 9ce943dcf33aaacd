"""Core shared kernel.

Foundational pieces used by every layer:
- Settings (pydantic-settings)
- Error codes and the adapter error hierarchy
- Composition root for the logger

The core module has NO dependencies on Cosmos DB or Casbin.
"""

from casbin_cosmosdb_adapter.core.enums import Environment, ErrorCode
from casbin_cosmosdb_adapter.core.errors import (
    AdapterError,
    FilteredPolicyError,
    InvalidFilterError,
    ProvisioningError,
)

__all__ = [
    "AdapterError",
    "Environment",
    "ErrorCode",
    "FilteredPolicyError",
    "InvalidFilterError",
    "ProvisioningError",
]
