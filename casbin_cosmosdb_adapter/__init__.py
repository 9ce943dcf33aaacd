"""casbin-cosmosdb-adapter - Casbin policy storage in Azure Cosmos DB.

This package provides:
- Adapter: blocking adapter for casbin.Enforcer
- AsyncAdapter: asyncio adapter for casbin.AsyncEnforcer (import from
  casbin_cosmosdb_adapter.infrastructure.authorization.async_cosmos_adapter)
- Filter / QuerySpec: selective policy loading
- CasbinRule: the stored rule document
"""

from casbin_cosmosdb_adapter.core.config import Settings, get_settings
from casbin_cosmosdb_adapter.core.errors import (
    AdapterError,
    FilteredPolicyError,
    InvalidFilterError,
    ProvisioningError,
)
from casbin_cosmosdb_adapter.domain.entities import CasbinRule
from casbin_cosmosdb_adapter.domain.value_objects import Filter, QuerySpec
from casbin_cosmosdb_adapter.infrastructure.authorization.cosmos_adapter import Adapter

__version__ = "0.1.0"

__all__ = [
    "Adapter",
    "AdapterError",
    "CasbinRule",
    "Filter",
    "FilteredPolicyError",
    "InvalidFilterError",
    "ProvisioningError",
    "QuerySpec",
    "Settings",
    "get_settings",
]
