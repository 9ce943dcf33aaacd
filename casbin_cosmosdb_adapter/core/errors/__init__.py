"""Core errors package.

Exports all core-level error classes for convenient importing.

Usage:
    from casbin_cosmosdb_adapter.core.errors import AdapterError, ProvisioningError
"""

from casbin_cosmosdb_adapter.core.errors.adapter_error import AdapterError
from casbin_cosmosdb_adapter.core.errors.common_errors import (
    FilteredPolicyError,
    InvalidFilterError,
    ProvisioningError,
)

__all__ = [
    "AdapterError",
    "FilteredPolicyError",
    "InvalidFilterError",
    "ProvisioningError",
]
