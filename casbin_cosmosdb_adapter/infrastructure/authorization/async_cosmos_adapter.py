"""Asyncio Casbin persistence adapter backed by Azure Cosmos DB.

Same document layout and semantics as the blocking Adapter, for
casbin.AsyncEnforcer. Every client call is awaited in turn; there is no
fan-out across documents.

Connecting and provisioning are I/O, so they cannot run in ``__init__``.
Use the ``create()`` factory instead.

Usage:
    import casbin

    from casbin_cosmosdb_adapter.infrastructure.authorization.async_cosmos_adapter import (
        AsyncAdapter,
    )

    adapter = await AsyncAdapter.create(connection_string)
    enforcer = casbin.AsyncEnforcer("model.conf", adapter)
    await enforcer.load_policy()
    ...
    await adapter.close()
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from azure.cosmos import PartitionKey
from azure.cosmos.aio import CosmosClient
from azure.core.exceptions import AzureError
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError
from casbin.persist.adapters.asyncio import AsyncAdapter as AsyncAdapterBase

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
    from azure.cosmos.aio import ContainerProxy, DatabaseProxy
    from casbin.model import Model

    from casbin_cosmosdb_adapter.core.config import Settings
    from casbin_cosmosdb_adapter.domain.protocols.logger_protocol import (
        LoggerProtocol,
    )


class AsyncAdapter(CosmosAdapterBase, AsyncAdapterBase):
    """Cosmos DB policy adapter for casbin.AsyncEnforcer.

    Attributes:
        _client: Async Cosmos DB client.
        _owns_client: Whether close() should close the client.
        _database: Database proxy (set by create()).
        _container: Policy container proxy (replaced on every full save).
    """

    def __init__(
        self,
        client: CosmosClient,
        *,
        database: str | None = None,
        collection: str | None = None,
        filtered: bool = False,
        owns_client: bool = False,
        settings: "Settings | None" = None,
        logger: "LoggerProtocol | None" = None,
    ) -> None:
        """Bind the adapter to a client without touching the network.

        Call provision() (or use create()) before any other method.
        """
        self._configure(
            database=database,
            collection=collection,
            filtered=filtered,
            settings=settings,
            logger=logger,
        )
        self._client = client
        self._owns_client = owns_client
        self._database: "DatabaseProxy | None" = None
        self._container: "ContainerProxy | None" = None

    @classmethod
    async def create(
        cls,
        connection_string: str | None = None,
        *,
        client: CosmosClient | None = None,
        settings: "Settings | None" = None,
        logger: "LoggerProtocol | None" = None,
        **kwargs: Any,
    ) -> "AsyncAdapter":
        """Connect, provision, and return a ready adapter.

        Args:
            connection_string: Cosmos DB connection string.
            client: Pre-built async client; skips connection_string.
            settings: Settings overriding the process-wide ones.
            logger: Logger overriding the process-wide one.
            **kwargs: database, collection, filtered.

        Returns:
            AsyncAdapter: Provisioned adapter.

        Raises:
            ProvisioningError: If the client cannot be created or the
                database/container cannot be read or created.
        """
        owns_client = client is None
        adapter = cls(
            client,  # type: ignore[arg-type]
            owns_client=owns_client,
            settings=settings,
            logger=logger,
            **kwargs,
        )
        if owns_client:
            adapter._client = adapter._connect(connection_string)
        try:
            await adapter.provision()
        except Exception:
            await adapter.close()
            raise
        return adapter

    @classmethod
    async def from_settings(
        cls, settings: "Settings | None" = None, **kwargs: Any
    ) -> "AsyncAdapter":
        """Build an adapter from CASBIN_COSMOS_* configuration."""
        settings = settings or get_settings()
        return await cls.create(settings.connection_string, settings=settings, **kwargs)

    async def close(self) -> None:
        """Close the client if this adapter created it."""
        if self._owns_client and self._client is not None:
            await self._client.close()

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

    async def provision(self) -> None:
        """Ensure the database and container exist, creating them if missing.

        Raises:
            ProvisioningError: On any failure other than "not found".
        """
        self._database = await self._ensure_database()
        self._container = await self._ensure_container()
        self._logger.info("cosmos_adapter_ready", filtered=self._filtered)

    async def _ensure_database(self) -> "DatabaseProxy":
        database = self._client.get_database_client(self._database_name)
        try:
            await database.read()
        except CosmosResourceNotFoundError:
            try:
                database = await self._client.create_database(self._database_name)
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

    async def _ensure_container(self) -> "ContainerProxy":
        container = self._database.get_container_client(self._collection_name)
        try:
            await container.read()
        except CosmosResourceNotFoundError:
            try:
                container = await self._create_container()
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

    async def _create_container(self) -> "ContainerProxy":
        return await self._database.create_container(
            id=self._collection_name,
            partition_key=PartitionKey(path=PARTITION_KEY_PATH, kind="Hash"),
        )

    async def _drop_collection(self) -> None:
        with self._store_errors("drop_collection"):
            await self._database.delete_container(self._collection_name)
            self._container = await self._create_container()
        self._logger.info("cosmos_collection_recreated")

    # ------------------------------------------------------------------
    # Document helpers
    # ------------------------------------------------------------------

    async def _read_pages(self, pager: Any) -> list[CasbinRule]:
        """Drain an AsyncItemPaged, following continuation tokens until exhausted."""
        rules: list[CasbinRule] = []
        pages = pager.by_page()
        number = 0
        async for page in pages:
            number += 1
            documents = [doc async for doc in page]
            rules.extend(CasbinRule.from_document(doc) for doc in documents)
            self._logger.debug(
                "cosmos_page_read",
                page=number,
                documents=len(documents),
                has_more=bool(pages.continuation_token),
            )
        return rules

    async def _query(self, spec: QuerySpec, ptype: str | None = None) -> list[CasbinRule]:
        # Omitting partition_key makes the async client query cross-partition
        options: dict[str, Any] = {"max_item_count": self._max_item_count}
        if ptype is not None:
            options["partition_key"] = ptype
        with self._store_errors("query_items", query=spec.query, ptype=ptype):
            pager = self._container.query_items(
                query=spec.query, parameters=spec.parameters, **options
            )
            return await self._read_pages(pager)

    async def _insert(self, rule: CasbinRule) -> None:
        with self._store_errors("create_item", ptype=rule.ptype):
            await self._container.create_item(body=rule.to_document())

    async def _delete_matching(self, spec: QuerySpec, ptype: str) -> int:
        matches = await self._query(spec, ptype)
        for rule in matches:
            with self._store_errors("delete_item", ptype=rule.ptype, id=rule.id):
                await self._container.delete_item(
                    item=rule.id, partition_key=partition_key(rule)
                )
        self._logger.debug("policy_rules_removed", ptype=ptype, removed=len(matches))
        return len(matches)

    # ------------------------------------------------------------------
    # AsyncAdapter
    # ------------------------------------------------------------------

    async def load_policy(self, model: "Model") -> None:
        """Load every stored rule into ``model``."""
        await self.load_filtered_policy(model, None)

    async def load_filtered_policy(
        self, model: "Model", filter: Filter | QuerySpec | None
    ) -> None:
        """Load the rules selected by ``filter`` into ``model``.

        Raises:
            InvalidFilterError: If ``filter`` has an unsupported type.
            CosmosHttpResponseError: If the store read fails.
        """
        if filter is None:
            self._filtered = False
            with self._store_errors("read_all_items"):
                rules = await self._read_pages(
                    self._container.read_all_items(max_item_count=self._max_item_count)
                )
        else:
            spec = resolve_filter(filter)
            self._filtered = True
            rules = await self._query(spec)

        loaded = load_rules(rules, model, self._logger)
        self._logger.info(
            "policy_loaded",
            documents=len(rules),
            rules=loaded,
            filtered=self._filtered,
        )

    async def save_policy(self, model: "Model") -> bool:
        """Replace the whole container with the rules in ``model``.

        Raises:
            FilteredPolicyError: If the loaded policy is filtered.
            CosmosHttpResponseError: If dropping or inserting fails.
        """
        self._check_savable()
        await self._drop_collection()
        rules = collect_rules(model)
        for rule in rules:
            await self._insert(rule)
        self._logger.info("policy_saved", rules=len(rules))
        return True

    async def add_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        """Insert one policy rule."""
        await self._insert(CasbinRule.from_policy(ptype, rule))
        return True

    async def add_policies(
        self, sec: str, ptype: str, rules: Sequence[Sequence[str]]
    ) -> bool:
        """Insert several policy rules, one request each."""
        for rule in rules:
            await self._insert(CasbinRule.from_policy(ptype, rule))
        return True

    async def remove_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:
        """Delete every document matching ``rule`` exactly."""
        return await self._delete_matching(rule_query(ptype, rule), ptype) > 0

    async def remove_policies(
        self, sec: str, ptype: str, rules: Sequence[Sequence[str]]
    ) -> bool:
        """Delete the documents matching each of ``rules``."""
        removed = 0
        for rule in rules:
            removed += await self._delete_matching(rule_query(ptype, rule), ptype)
        return removed > 0

    async def remove_filtered_policy(
        self, sec: str, ptype: str, field_index: int, *field_values: str
    ) -> bool:
        """Delete documents whose values match from ``field_index`` on."""
        spec = filtered_rule_query(ptype, field_index, field_values)
        return await self._delete_matching(spec, ptype) > 0

    async def update_policy(
        self,
        sec: str,
        ptype: str,
        old_rule: Sequence[str],
        new_rule: Sequence[str],
    ) -> bool:
        """Rewrite the documents matching ``old_rule`` with ``new_rule``."""
        matches = await self._query(rule_query(ptype, old_rule), ptype)
        for match in matches:
            replacement = CasbinRule.from_policy(ptype, new_rule)
            replacement.id = match.id
            with self._store_errors("replace_item", ptype=ptype, id=match.id):
                await self._container.replace_item(
                    item=match.id, body=replacement.to_document()
                )
        return len(matches) > 0

    async def update_policies(
        self,
        sec: str,
        ptype: str,
        old_rules: Sequence[Sequence[str]],
        new_rules: Sequence[Sequence[str]],
    ) -> bool:
        """Apply update_policy() pairwise over ``old_rules``/``new_rules``."""
        updated = False
        for old_rule, new_rule in zip(old_rules, new_rules):
            updated = await self.update_policy(sec, ptype, old_rule, new_rule) or updated
        return updated
