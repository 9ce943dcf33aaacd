"""Parameterized Cosmos SQL builders for rule lookups.

Every query selects whole documents from the policy container and binds
values through parameters, never through string interpolation.
"""

from collections.abc import Sequence

from casbin_cosmosdb_adapter.core.errors import InvalidFilterError
from casbin_cosmosdb_adapter.domain.entities.casbin_rule import (
    FIELD_NAMES,
    PTYPE_FIELD,
)
from casbin_cosmosdb_adapter.domain.value_objects import Filter, QuerySpec
from casbin_cosmosdb_adapter.domain.value_objects.query_spec import ROOT, SELECT_ALL

# Partition key path of the policy container
PARTITION_KEY_PATH = f"/{PTYPE_FIELD}"


def _ptype_query(ptype: str, columns: Sequence[tuple[str, str]]) -> QuerySpec:
    query = f"{SELECT_ALL} WHERE {ROOT}.{PTYPE_FIELD} = @{PTYPE_FIELD}"
    parameters = [{"name": f"@{PTYPE_FIELD}", "value": ptype}]
    for column, value in columns:
        query += f" AND {ROOT}.{column} = @{column}"
        parameters.append({"name": f"@{column}", "value": value})
    return QuerySpec(query=query, parameters=parameters)


def rule_query(ptype: str, rule: Sequence[str]) -> QuerySpec:
    """Select documents of ``ptype`` whose leading values equal ``rule``.

    One equality clause per supplied value, in order. Values beyond v5 are
    ignored.

    Example:
        >>> rule_query("p", ["alice", "data1"]).query
        'SELECT * FROM root WHERE root.pType = @pType AND root.v0 = @v0 AND root.v1 = @v1'
    """
    return _ptype_query(ptype, list(zip(FIELD_NAMES, rule)))


def filtered_rule_query(
    ptype: str, field_index: int, field_values: Sequence[str]
) -> QuerySpec:
    """Select documents of ``ptype`` matching values from ``field_index`` on.

    Position ``i`` in ``[field_index, field_index + len(field_values))`` maps
    to column ``v<i>``. Empty values act as wildcards and add no clause.

    Args:
        ptype: Policy type tag.
        field_index: Column index of the first value.
        field_values: Values for consecutive columns.

    Returns:
        QuerySpec: Query with the pType clause plus one clause per non-empty value.
    """
    columns = []
    for index, column in enumerate(FIELD_NAMES):
        offset = index - field_index
        if 0 <= offset < len(field_values) and field_values[offset]:
            columns.append((column, field_values[offset]))
    return _ptype_query(ptype, columns)


def resolve_filter(filter: Filter | QuerySpec) -> QuerySpec:
    """Turn a load filter into the query to run.

    Raises:
        InvalidFilterError: If ``filter`` is neither a Filter nor a QuerySpec.
    """
    if isinstance(filter, QuerySpec):
        return filter
    if isinstance(filter, Filter):
        return filter.to_query_spec()
    raise InvalidFilterError(type(filter).__name__)
