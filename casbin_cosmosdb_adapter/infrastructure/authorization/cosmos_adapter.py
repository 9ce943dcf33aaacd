"""Casbin persistence adapter backed by Azure Cosmos DB.

This adapter stores every Casbin policy line as one document in a container
partitioned by policy type:
- Database/container are created on first use when missing
- Reads follow continuation tokens page by page
- Full saves drop and recreate the container, then reinsert every rule
- Incremental add/remove/update touch single documents

Each call blocks on the Cosmos DB client and returns synchronously. Store
errors are logged and re-raised unchanged; nothing is retried.

Usage:
    import casbin

    from casbin_cosmosdb_adapter import Adapter

    adapter = Adapter(connection_string, database="casbin", collection="casbin_rule")
    enforcer = casbin.Enforcer("model.conf", adapter)
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from azure.cosmos import CosmosClient, PartitionKey
from azure.core.exceptions import AzureError
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError
from casbin import persist

from casbin_cosmosdb_adapter.core.config import get_settings
from casbin_cosmosdb_adapter.core.enums import ErrorCode
from casbin_cosmosdb_adapter.domain.entities import CasbinRule, partition_key
from casbin_cosmosdb_adapter.domain.value_objects import Filter, QuerySpec
from casbin_cosmosdb_adapter.infrastructure.authorization.base import (
    CosmosAdapterBase,
    collect_rules,
    load_rules,
)
from casbin_cosmosdb_adapter.infrastructure.persistence.queries import (
    PARTITION_KEY_PATH,
    filtered_rule_query,
    resolve_filter,
    rule_query,
)

if TYPE_CHECKING:
    from azure.cosmos import ContainerProxy, DatabaseProxy
    from casbin.model import Model

    from casbin_cosmosdb_adapter.core.config import Settings
    from casbin_cosmosdb_adapter.domain.protocols.logger_protocol import (
        LoggerProtocol,
    )


class Adapter(CosmosAdapterBase, persist.Adapter):
    """Cosmos DB policy adapter for casbin.Enforcer.

    Note:
        With ``filtered=True`` the enforcer will not call load_policy()
        automatically; call load_filtered_policy() yourself.

    Attributes:
        _client: Cosmos DB client.
        _database: Database proxy.
        _container: Policy container proxy (replaced on every full save).
    """

    def __init__(
        self,
        connection_string: str | None = None,
        *,
        database: str | None = None,
        collection: str | None = None,
        filtered: bool = False,
        client: CosmosClient | None = None,
        settings: "Settings | None" = None,
        logger: "LoggerProtocol | None" = None,
    ) -> None:
        """Connect and provision the policy database and container.

        Args:
            connection_string: Cosmos DB connection string.
            database: Database name (default "casbin").
            collection: Container name (default "casbin_rule").
            filtered: Start in filtered state (no automatic full load).
            client: Pre-built client; skips connection_string.
            settings: Settings overriding the process-wide ones.
            logger: Logger overriding the process-wide one.

        Raises:
            ProvisioningError: If the client cannot be created or the
                database/container cannot be read or created.
        """
        self._configure(
            database=database,
            collection=collection,
            filtered=filtered,
            settings=settings,
            logger=logger,
        )
        self._client = client if client is not None else self._connect(connection_string)
        self._database = self._ensure_database()
        self._container = self._ensure_container()
        self._logger.info("cosmos_adapter_ready", filtered=filtered)

    @classmethod
    def from_settings(cls, settings: "Settings | None" = None, **kwargs: Any) -> "Adapter":
        """Build an adapter from CASBIN_COSMOS_* configuration.

        Args:
            settings: Settings to use (default: get_settings()).
            **kwargs: Extra keyword arguments for the constructor.

        Returns:
            Adapter: Connected and provisioned adapter.
        """
        settings = settings or get_settings()
        return cls(settings.connection_string, settings=settings, **kwargs)

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def _connect(self, connection_string: str | None) -> CosmosClient:
        if not connection_string:
            raise self._missing_connection_string()
        try:
            return CosmosClient.from_connection_string(connection_string)
        except Exception as e:
            raise self._provisioning_failed(
                "client",
                "",
                e,
                code=ErrorCode.DATABASE_CONNECTION_FAILED,
            ) from e

    def _ensure_database(self) -> "DatabaseProxy":
        database = self._client.get_database_client(self._database_name)
        try:
            database.read()
        except CosmosResourceNotFoundError:
            try:
                database = self._client.create_database(self._database_name)
            except CosmosHttpResponseError as e:
                raise self._provisioning_failed("database", self._database_name, e) from e
            except AzureError as e:
                raise self._unreachable("database", self._database_name, e) from e
            self._logger.info("cosmos_database_created")
        except CosmosHttpResponseError as e:
            raise self._provisioning_failed("database", self._database_name, e) from e
        except AzureError as e:
            raise self._unreachable("database", self._database_name, e) from e
        return database

    def _ensure_container(self) -> "ContainerProxy":
        container = self._database.get_container_client(self._collection_name)
        try:
            container.read()
        except CosmosResourceNotFoundError:
            try:
                container = self._create_container()
            except CosmosHttpResponseError as e:
                raise self._provisioning_failed(
                    "container", self._collection_name, e
                ) from e
            except AzureError as e:
                raise self._unreachable("container", self._collection_name, e) from e
            self._logger.info("cosmos_collection_created")
        except CosmosHttpResponseError as e:
            raise self._provisioning_failed("container", self._collection_name, e) from e
        except AzureError as e:
            raise self._unreachable("container", self._collection_name, e) from e
        return container

    def _create_container(self) -> "ContainerProxy":
        return self._database.create_container(
            id=self._collection_name,
            partition_key=PartitionKey(path=PARTITION_KEY_PATH, kind="Hash"),
        )

    def _drop_collection(self) -> None:
        with self._store_errors("drop_collection"):
            self._database.delete_container(self._collection_name)
            self._container = self._create_container()
        self._logger.info("cosmos_collection_recreated")

    # ------------------------------------------------------------------
    # Document helpers
    # ------------------------------------------------------------------

    def _read_pages(self, pager: Any) -> list[CasbinRule]:
        """Drain an ItemPaged, following continuation tokens until exhausted."""
        rules: list[CasbinRule] = []
        pages = pager.by_page()
        for number, page in enumerate(pages, start=1):
            documents = list(page)
            rules.extend(CasbinRule.from_document(doc) for doc in documents)
            self._logger.debug(
                "cosmos_page_read",
                page=number,
                documents=len(documents),
                has_more=bool(pages.continuation_token),
            )
        return rules

    def _query(self, spec: QuerySpec, ptype: str | None = None) -> list[CasbinRule]:
        with self._store_errors("query_items", query=spec.query, ptype=ptype):
            if ptype is None:
                pager = self._container.query_items(
                    query=spec.query,
                    parameters=spec.parameters,
                    enable_cross_partition_query=True,
                    max_item_count=self._max_item_count,
                )
            else:
                pager = self._container.query_items(
                    query=spec.query,
                    parameters=spec.parameters,
                    partition_key=ptype,
                    max_item_count=self._max_item_count,
                )
            return self._read_pages(pager)

    def _insert(self, rule: CasbinRule) -> None:
        with self._store_errors("create_item", ptype=rule.ptype):
            self._container.create_item(body=rule.to_document())

    def _delete_matching(self, spec: QuerySpec, ptype: str) -> int:
        matches = self._query(spec, ptype)
        for rule in matches:
            with self._store_errors("delete_item", ptype=rule.ptype, id=rule.id):
                self._container.delete_item(item=rule.id, partition_key=partition_key(rule))
        self._logger.debug("policy_rules_removed", ptype=ptype, removed=len(matches))
        return len(matches)

    # ------------------------------------------------------------------
    # persist.Adapter
    # ------------------------------------------------------------------

    def load_policy(self, model: "Model") -> None:
        """Load every stored rule into ``model``."""
        self.load_filtered_policy(model, None)

    def load_filtered_policy(
        self, model: "Model", filter: Filter | QuerySpec | None
    ) -> None:
        """Load the rules selected by ``filter`` into ``model``.

        Args:
            model: Casbin model to fill.
            filter: Filter, QuerySpec, or None for the whole container.

        Raises:
            InvalidFilterError: If ``filter`` has an unsupported type.
            CosmosHttpResponseError: If the store read fails.
        """
        if filter is None:
            self._filtered = False
            with self._store_errors("read_all_items"):
                rules = self._read_pages(
                    self._container.read_all_items(max_item_count=self._max_item_count)
                )
        else:
            spec = resolve_filter(filter)
            self._filtered = True
            rules = self._query(spec)

        loaded = load_rules(rules, model, self._logger)
        self._logger.info(
            "policy_loaded",
            documents=len(rules),
            rules=loaded,
            filtered=self._filtered,
        )

    def save_policy(self, model: "Model") -> bool:
        """Replace the whole container with the rules in ``model``.

        Not atomic: readers may observe an empty or partial container while
        the save runs. The first failed insert aborts the save.

        Raises:
            FilteredPolicyError: If the loaded policy is filtered.
            CosmosHttpResponseError: If dropping or inserting fails.
        """
        self._check_savable()
        self._drop_collection()
        rules = collect_rules(model)
        for rule in rules:
            self._insert(rule)
        self._logger.info("policy_saved", rules=len(rules))
        return True

    def add_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        """Insert one policy rule."""
        self._insert(CasbinRule.from_policy(ptype, rule))
        return True

    def add_policies(
        self, sec: str, ptype: str, rules: Sequence[Sequence[str]]
    ) -> bool:
        """Insert several policy rules, one request each."""
        for rule in rules:
            self._insert(CasbinRule.from_policy(ptype, rule))
        return True

    def remove_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        """Delete every document matching ``rule`` exactly.

        Returns:
            bool: True if at least one document was deleted.
        """
        return self._delete_matching(rule_query(ptype, rule), ptype) > 0

    def remove_policies(
        self, sec: str, ptype: str, rules: Sequence[Sequence[str]]
    ) -> bool:
        """Delete the documents matching each of ``rules``."""
        removed = 0
        for rule in rules:
            removed += self._delete_matching(rule_query(ptype, rule), ptype)
        return removed > 0

    def remove_filtered_policy(
        self, sec: str, ptype: str, field_index: int, *field_values: str
    ) -> bool:
        """Delete documents whose values match from ``field_index`` on.

        Empty values in ``field_values`` match anything.

        Returns:
            bool: True if at least one document was deleted.
        """
        spec = filtered_rule_query(ptype, field_index, field_values)
        return self._delete_matching(spec, ptype) > 0

    def update_policy(
        self,
        sec: str,
        ptype: str,
        old_rule: Sequence[str],
        new_rule: Sequence[str],
    ) -> bool:
        """Rewrite the documents matching ``old_rule`` with ``new_rule``.

        Returns:
            bool: True if at least one document was replaced.
        """
        matches = self._query(rule_query(ptype, old_rule), ptype)
        for match in matches:
            replacement = CasbinRule.from_policy(ptype, new_rule)
            replacement.id = match.id
            with self._store_errors("replace_item", ptype=ptype, id=match.id):
                self._container.replace_item(item=match.id, body=replacement.to_document())
        return len(matches) > 0

    def update_policies(
        self,
        sec: str,
        ptype: str,
        old_rules: Sequence[Sequence[str]],
        new_rules: Sequence[Sequence[str]],
    ) -> bool:
        """Apply update_policy() pairwise over ``old_rules``/``new_rules``."""
        updated = False
        for old_rule, new_rule in zip(old_rules, new_rules):
            updated = self.update_policy(sec, ptype, old_rule, new_rule) or updated
        return updated
