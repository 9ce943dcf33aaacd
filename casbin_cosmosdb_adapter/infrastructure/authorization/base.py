"""Shared behaviour of the blocking and asyncio Cosmos DB adapters.

Both adapters translate between Casbin models and the policy container in
exactly the same way; only the client calls differ (awaited or not). The
pieces that never touch the network live here.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from azure.cosmos.exceptions import CosmosHttpResponseError

from casbin_cosmosdb_adapter.core.config import get_settings
from casbin_cosmosdb_adapter.core.container import get_logger
from casbin_cosmosdb_adapter.core.enums import ErrorCode
from casbin_cosmosdb_adapter.core.errors import FilteredPolicyError, ProvisioningError
from casbin_cosmosdb_adapter.domain.entities import CasbinRule

if TYPE_CHECKING:
    from casbin.model import Model

    from casbin_cosmosdb_adapter.core.config import Settings
    from casbin_cosmosdb_adapter.domain.protocols.logger_protocol import (
        LoggerProtocol,
    )


# Model sections persisted by a full save
SAVED_SECTIONS = ("p", "g")


def load_rules(
    rules: Iterable[CasbinRule], model: "Model", logger: "LoggerProtocol"
) -> int:
    """Add stored rules to the matching section/type of ``model``.

    Rules whose ptype is unknown to the model are skipped with a warning.

    Returns:
        int: Number of rules added to the model.
    """
    loaded = 0
    for rule in rules:
        assertions = model.model.get(rule.section, {})
        if rule.ptype not in assertions:
            logger.warning(
                "policy_rule_skipped",
                reason="unknown_ptype",
                ptype=rule.ptype,
                id=rule.id,
            )
            continue
        if model.add_policy(rule.section, rule.ptype, rule.policy_tokens()):
            loaded += 1
    return loaded


def collect_rules(model: "Model") -> list[CasbinRule]:
    """Build one CasbinRule per policy line in the p and g sections."""
    rules: list[CasbinRule] = []
    for sec in SAVED_SECTIONS:
        for ptype, assertion in model.model.get(sec, {}).items():
            rules.extend(CasbinRule.from_policy(ptype, line) for line in assertion.policy)
    return rules


class CosmosAdapterBase:
    """Configuration, logging and filtered-state bookkeeping.

    Attributes:
        _database_name: Target database name.
        _collection_name: Target container name.
        _max_item_count: Page size for reads and queries.
        _filtered: Whether the last load was filtered.
        _logger: Logger bound to database and collection names.
    """

    def _configure(
        self,
        *,
        database: str | None,
        collection: str | None,
        filtered: bool,
        settings: "Settings | None",
        logger: "LoggerProtocol | None",
    ) -> None:
        settings = settings or get_settings()
        self._database_name = database or settings.database_name
        self._collection_name = collection or settings.collection_name
        self._max_item_count = settings.max_item_count
        self._filtered = filtered
        self._logger = (logger or get_logger()).bind(
            database=self._database_name,
            collection=self._collection_name,
        )

    def is_filtered(self) -> bool:
        """Return True if the loaded policy has been filtered."""
        return self._filtered

    def _check_savable(self) -> None:
        """Reject a full save while holding a filtered policy.

        Raises:
            FilteredPolicyError: If the last load was filtered.
        """
        if self._filtered:
            self._logger.warning("policy_save_rejected", reason="filtered")
            raise FilteredPolicyError()

    @contextmanager
    def _store_errors(self, operation: str, **context: Any) -> Iterator[None]:
        """Log store failures and re-raise them unchanged."""
        try:
            yield
        except CosmosHttpResponseError as e:
            self._logger.error(
                "cosmos_operation_failed",
                error=e,
                operation=operation,
                status_code=e.status_code,
                **context,
            )
            raise

    def _provisioning_failed(
        self,
        resource_type: str,
        resource_id: str,
        error: Exception,
        *,
        code: ErrorCode = ErrorCode.DATABASE_PROVISIONING_FAILED,
    ) -> ProvisioningError:
        """Log a fatal construction failure and build the error to raise."""
        self._logger.critical(
            "cosmos_provisioning_failed",
            error=error,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        target = f"{resource_type} '{resource_id}'" if resource_id else resource_type
        return ProvisioningError(
            code=code,
            message=f"Provisioning cosmos {target} failed: {error}",
            resource_type=resource_type,
            resource_id=resource_id,
            details={"error": str(error), "type": type(error).__name__},
        )

    def _unreachable(
        self, resource_type: str, resource_id: str, error: Exception
    ) -> ProvisioningError:
        """Build the error for a service that could not be reached while provisioning."""
        return self._provisioning_failed(
            resource_type,
            resource_id,
            error,
            code=ErrorCode.DATABASE_CONNECTION_FAILED,
        )

    def _missing_connection_string(self) -> ProvisioningError:
        return self._provisioning_failed(
            "client",
            "",
            ValueError("a connection string or client is required"),
            code=ErrorCode.DATABASE_CONNECTION_FAILED,
        )
