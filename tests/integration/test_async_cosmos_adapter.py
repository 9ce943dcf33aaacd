"""Integration tests for the asyncio Cosmos DB adapter.

Tests cover:
- create() provisioning and client ownership
- Paged and filtered loads
- Full save and filtered-save rejection
- Incremental add/remove/update
- casbin.AsyncEnforcer driving the adapter

Architecture:
- Adapter runs against the in-memory asyncio Cosmos DB double (tests/fakes)
- Real casbin Model and AsyncEnforcer
"""

from unittest.mock import patch

import casbin
import pytest
import pytest_asyncio
from azure.core.exceptions import ServiceRequestError
from azure.cosmos.exceptions import CosmosHttpResponseError

from casbin_cosmosdb_adapter import (
    Filter,
    FilteredPolicyError,
    InvalidFilterError,
    ProvisioningError,
    QuerySpec,
    Settings,
)
from casbin_cosmosdb_adapter.core.enums import ErrorCode
from casbin_cosmosdb_adapter.infrastructure.authorization.async_cosmos_adapter import (
    AsyncAdapter,
)
from tests.fakes.cosmos import FakeAsyncCosmosClient

FROM_CONNECTION_STRING = (
    "casbin_cosmosdb_adapter.infrastructure.authorization.async_cosmos_adapter"
    ".CosmosClient.from_connection_string"
)
CONNECTION_STRING = "AccountEndpoint=https://localhost:8081/;AccountKey=dGVzdA==;"


@pytest_asyncio.fixture
async def adapter(async_cosmos_client, test_settings, mock_logger):
    """Provisioned adapter over an empty account."""
    return await AsyncAdapter.create(
        client=async_cosmos_client, settings=test_settings, logger=mock_logger
    )


@pytest_asyncio.fixture
async def seeded_adapter(adapter):
    """Adapter whose container already holds a small RBAC policy."""
    await adapter.add_policies(
        "p",
        "p",
        [
            ["alice", "data1", "read"],
            ["bob", "data2", "write"],
            ["carol", "data1", "write"],
        ],
    )
    await adapter.add_policy("g", "g", ["alice", "admin"])
    return adapter


def stored_rules(account) -> list[tuple]:
    """(pType, v0..v5) of every stored document, sorted."""
    return sorted(
        (doc["pType"], doc["v0"], doc["v1"], doc["v2"], doc["v3"], doc["v4"], doc["v5"])
        for doc in account.documents()
    )


@pytest.mark.integration
@pytest.mark.asyncio
class TestCreate:
    """Test AsyncAdapter.create() and close()."""

    async def test_create_provisions_database_and_container(
        self, cosmos_account, async_cosmos_client, test_settings, mock_logger
    ):
        """Test missing resources are created before create() returns."""
        adapter = await AsyncAdapter.create(
            client=async_cosmos_client, settings=test_settings, logger=mock_logger
        )

        assert cosmos_account.container("casbin", "casbin_rule").partition_key_path == "/pType"
        assert adapter.is_filtered() is False
        mock_logger.info.assert_any_call("cosmos_database_created")
        mock_logger.info.assert_any_call("cosmos_collection_created")
        mock_logger.info.assert_any_call("cosmos_adapter_ready", filtered=False)

    async def test_borrowed_client_is_not_closed(self, adapter, async_cosmos_client):
        """Test close() leaves a caller-supplied client open."""
        await adapter.close()

        assert async_cosmos_client.closed is False

    async def test_owned_client_is_closed(self, cosmos_account, test_settings, mock_logger):
        """Test close() closes a client built from a connection string."""
        client = FakeAsyncCosmosClient(cosmos_account)
        with patch(FROM_CONNECTION_STRING, return_value=client) as factory:
            adapter = await AsyncAdapter.create(
                CONNECTION_STRING, settings=test_settings, logger=mock_logger
            )

        factory.assert_called_once_with(CONNECTION_STRING)
        await adapter.close()
        assert client.closed is True

    async def test_provisioning_failure_closes_owned_client(
        self, cosmos_account, test_settings, mock_logger
    ):
        """Test a failed create() releases the client it built."""
        client = FakeAsyncCosmosClient(cosmos_account)
        cosmos_account.fail(
            "container.read", CosmosHttpResponseError(status_code=401, message="Unauthorized")
        )

        with patch(FROM_CONNECTION_STRING, return_value=client):
            with pytest.raises(ProvisioningError) as exc_info:
                await AsyncAdapter.create(
                    CONNECTION_STRING, settings=test_settings, logger=mock_logger
                )

        assert exc_info.value.code == ErrorCode.DATABASE_PROVISIONING_FAILED
        assert exc_info.value.resource_type == "container"
        assert client.closed is True
        mock_logger.critical.assert_called_once()

    async def test_missing_connection_string(self, test_settings, mock_logger):
        """Test neither client nor connection string is a connection failure."""
        with pytest.raises(ProvisioningError) as exc_info:
            await AsyncAdapter.create(settings=test_settings, logger=mock_logger)

        assert exc_info.value.code == ErrorCode.DATABASE_CONNECTION_FAILED
        assert exc_info.value.resource_id == ""

    async def test_unreachable_endpoint_on_database_read(
        self, cosmos_account, async_cosmos_client, test_settings, mock_logger
    ):
        """Test the lazily connecting client's first failure is a connection failure."""
        error = ServiceRequestError("Cannot connect to host")
        cosmos_account.fail("database.read", error)

        with pytest.raises(ProvisioningError) as exc_info:
            await AsyncAdapter.create(
                client=async_cosmos_client, settings=test_settings, logger=mock_logger
            )

        assert exc_info.value.code == ErrorCode.DATABASE_CONNECTION_FAILED
        assert exc_info.value.resource_type == "database"
        assert exc_info.value.__cause__ is error
        assert async_cosmos_client.closed is False
        mock_logger.critical.assert_called_once()

    async def test_from_settings(self, cosmos_account, mock_logger):
        """Test from_settings() reads connection string and names from settings."""
        settings = Settings(
            _env_file=None,
            connection_string=CONNECTION_STRING,
            database_name="authz",
            collection_name="rules",
        )
        client = FakeAsyncCosmosClient(cosmos_account)

        with patch(FROM_CONNECTION_STRING, return_value=client):
            adapter = await AsyncAdapter.from_settings(settings, logger=mock_logger)

        assert "rules" in cosmos_account.databases["authz"]
        await adapter.close()


@pytest.mark.integration
@pytest.mark.asyncio
class TestLoadPolicy:
    """Test full and filtered loads."""

    async def test_loads_every_rule_across_pages(self, seeded_adapter, rbac_model, mock_logger):
        """Test four documents at page size 2 load completely."""
        await seeded_adapter.load_policy(rbac_model)

        assert sorted(rbac_model.get_policy("p", "p")) == [
            ["alice", "data1", "read"],
            ["bob", "data2", "write"],
            ["carol", "data1", "write"],
        ]
        assert rbac_model.get_policy("g", "g") == [["alice", "admin"]]
        pages = [c for c in mock_logger.debug.call_args_list if c.args == ("cosmos_page_read",)]
        assert len(pages) == 2

    async def test_filter_selects_matching_rules(self, seeded_adapter, rbac_model):
        """Test Filter(v0=["alice"]) loads alice's rules only."""
        await seeded_adapter.load_filtered_policy(rbac_model, Filter(v0=["alice"]))

        assert rbac_model.get_policy("p", "p") == [["alice", "data1", "read"]]
        assert rbac_model.get_policy("g", "g") == [["alice", "admin"]]
        assert seeded_adapter.is_filtered() is True

    async def test_query_spec_is_run_verbatim(self, seeded_adapter, rbac_model):
        """Test a raw QuerySpec runs across partitions."""
        spec = QuerySpec(
            query="SELECT * FROM root WHERE root.v1 = @v1",
            parameters=[{"name": "@v1", "value": "data1"}],
        )

        await seeded_adapter.load_filtered_policy(rbac_model, spec)

        assert sorted(rbac_model.get_policy("p", "p")) == [
            ["alice", "data1", "read"],
            ["carol", "data1", "write"],
        ]

    async def test_unsupported_filter_type(self, seeded_adapter, rbac_model):
        """Test other filter types are rejected."""
        with pytest.raises(InvalidFilterError):
            await seeded_adapter.load_filtered_policy(rbac_model, ["alice"])


@pytest.mark.integration
@pytest.mark.asyncio
class TestSavePolicy:
    """Test save_policy()."""

    async def test_save_then_load_round_trip(
        self, seeded_adapter, cosmos_account, rbac_model, model_factory
    ):
        """Test a saved model replaces the container and loads back."""
        rbac_model.add_policy("p", "p", ["alice", "data1", "read"])
        rbac_model.add_policy("p", "p", ["bob", "data2", "write"])
        rbac_model.add_policy("g", "g", ["alice", "admin"])

        assert await seeded_adapter.save_policy(rbac_model) is True

        assert stored_rules(cosmos_account) == [
            ("g", "alice", "admin", "", "", "", ""),
            ("p", "alice", "data1", "read", "", "", ""),
            ("p", "bob", "data2", "write", "", "", ""),
        ]
        reloaded = model_factory()
        await seeded_adapter.load_policy(reloaded)
        assert reloaded.get_policy("g", "g") == [["alice", "admin"]]

    async def test_save_rejected_after_filtered_load(
        self, seeded_adapter, cosmos_account, rbac_model
    ):
        """Test a filtered adapter refuses to save and writes nothing."""
        await seeded_adapter.load_filtered_policy(rbac_model, Filter(v0=["alice"]))

        with pytest.raises(FilteredPolicyError):
            await seeded_adapter.save_policy(rbac_model)

        assert "delete_container" not in cosmos_account.calls
        assert len(cosmos_account.documents()) == 4

    async def test_failed_insert_aborts_save(self, adapter, cosmos_account, rbac_model):
        """Test the first failed insert propagates unchanged."""
        rbac_model.add_policy("p", "p", ["alice", "data1", "read"])
        rbac_model.add_policy("p", "p", ["bob", "data2", "write"])
        error = CosmosHttpResponseError(status_code=503, message="Service unavailable")
        cosmos_account.fail("create_item", error, after=1)

        with pytest.raises(CosmosHttpResponseError) as exc_info:
            await adapter.save_policy(rbac_model)

        assert exc_info.value is error
        assert len(cosmos_account.documents()) == 1


@pytest.mark.integration
@pytest.mark.asyncio
class TestIncrementalOperations:
    """Test add/remove/update."""

    async def test_add_and_remove_policy(self, adapter, cosmos_account):
        """Test duplicates are stored and removed together."""
        await adapter.add_policy("p", "p", ["alice", "data1", "read"])
        await adapter.add_policy("p", "p", ["alice", "data1", "read"])

        assert await adapter.remove_policy("p", "p", ["alice", "data1", "read"]) is True
        assert cosmos_account.documents() == []
        assert await adapter.remove_policy("p", "p", ["alice", "data1", "read"]) is False

    async def test_remove_policies(self, seeded_adapter, cosmos_account):
        """Test each rule in the batch is removed."""
        removed = await seeded_adapter.remove_policies(
            "p", "p", [["alice", "data1", "read"], ["carol", "data1", "write"]]
        )

        assert removed is True
        assert stored_rules(cosmos_account) == [
            ("g", "alice", "admin", "", "", "", ""),
            ("p", "bob", "data2", "write", "", "", ""),
        ]

    async def test_remove_filtered_policy(self, seeded_adapter, cosmos_account):
        """Test field_index=1 with "data1" removes every rule on data1."""
        assert await seeded_adapter.remove_filtered_policy("p", "p", 1, "data1") is True

        assert [d["v0"] for d in cosmos_account.documents() if d["pType"] == "p"] == ["bob"]

    async def test_update_policy_keeps_id(self, seeded_adapter, cosmos_account):
        """Test the replaced document keeps its id."""
        (old,) = [d for d in cosmos_account.documents() if d["v0"] == "carol"]

        assert await seeded_adapter.update_policy(
            "p", "p", ["carol", "data1", "write"], ["carol", "data1", "read"]
        ) is True

        (new,) = [d for d in cosmos_account.documents() if d["v0"] == "carol"]
        assert new["id"] == old["id"]
        assert new["v2"] == "read"

    async def test_update_policies(self, seeded_adapter, cosmos_account):
        """Test pairwise updates and the no-match case."""
        assert await seeded_adapter.update_policies(
            "g", "g", [["alice", "admin"]], [["alice", "root"]]
        ) is True
        assert await seeded_adapter.update_policies(
            "g", "g", [["nobody", "admin"]], [["somebody", "admin"]]
        ) is False

        assert ("g", "alice", "root", "", "", "", "") in stored_rules(cosmos_account)


@pytest.mark.integration
@pytest.mark.asyncio
class TestAsyncEnforcerIntegration:
    """casbin.AsyncEnforcer driving the adapter."""

    async def test_async_enforcer_round_trip(self, seeded_adapter, cosmos_account, rbac_model):
        """Test loading, enforcing and autosaving through AsyncEnforcer."""
        enforcer = casbin.AsyncEnforcer(rbac_model, seeded_adapter)
        await enforcer.load_policy()

        assert enforcer.enforce("alice", "data1", "read") is True
        assert enforcer.enforce("dave", "data1", "read") is False

        await enforcer.add_grouping_policy("dave", "alice")
        assert enforcer.enforce("dave", "data1", "read") is True
        assert ("g", "dave", "alice", "", "", "", "") in stored_rules(cosmos_account)

        await enforcer.remove_policy("bob", "data2", "write")
        assert ("p", "bob", "data2", "write", "", "", "") not in stored_rules(cosmos_account)
