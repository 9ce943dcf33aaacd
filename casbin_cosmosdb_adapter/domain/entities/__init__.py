"""Domain entities."""

from casbin_cosmosdb_adapter.domain.entities.casbin_rule import (
    CasbinRule,
    partition_key,
)

__all__ = ["CasbinRule", "partition_key"]
