"""Value objects (immutable, no identity)."""

from casbin_cosmosdb_adapter.domain.value_objects.query_spec import Filter, QuerySpec

__all__ = ["Filter", "QuerySpec"]
