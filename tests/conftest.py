"""Pytest configuration and shared fixtures.

This configuration ensures:
1. Async tests run under pytest-asyncio
2. Every test gets a fresh in-memory Cosmos DB account
3. Settings never leak in from the developer's environment or .env file
4. Loggers are mocks so tests can assert on emitted events
"""

import inspect
from unittest.mock import Mock

import pytest
from casbin.model import Model

from casbin_cosmosdb_adapter.core.config import Settings
from tests.fakes.cosmos import FakeAsyncCosmosClient, FakeCosmosAccount, FakeCosmosClient


RBAC_MODEL = """
[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = g(r.sub, p.sub) && r.obj == p.obj && r.act == p.act
"""


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line(
        "markers", "integration: Integration tests against the in-memory Cosmos DB double"
    )
    config.addinivalue_line("markers", "asyncio: Async test that requires event loop")


def pytest_collection_modifyitems(config, items):
    """Automatically add asyncio marker to async test functions.

    This ensures all async tests are properly marked even if
    the developer forgets to add @pytest.mark.asyncio.
    """
    for item in items:
        if inspect.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)


@pytest.fixture
def mock_logger():
    """Provide a mock logger for testing.

    bind()/with_context() return the same mock, so events logged through a
    bound logger are visible on the fixture.

    Usage:
        def test_something(mock_logger):
            adapter = Adapter(client=client, logger=mock_logger)
            mock_logger.info.assert_any_call("cosmos_adapter_ready", filtered=False)
    """
    logger = Mock()
    logger.info = Mock()
    logger.debug = Mock()
    logger.error = Mock()
    logger.warning = Mock()
    logger.critical = Mock()
    logger.bind.return_value = logger
    logger.with_context.return_value = logger
    return logger


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from environment variables and .env files."""
    return Settings(_env_file=None, environment="testing", max_item_count=2)


@pytest.fixture
def cosmos_account() -> FakeCosmosAccount:
    """Fresh in-memory Cosmos DB account (page size 2)."""
    return FakeCosmosAccount(page_size=2)


@pytest.fixture
def cosmos_client(cosmos_account) -> FakeCosmosClient:
    """Blocking client over the fresh account."""
    return FakeCosmosClient(cosmos_account)


@pytest.fixture
def async_cosmos_client(cosmos_account) -> FakeAsyncCosmosClient:
    """Asyncio client over the fresh account."""
    return FakeAsyncCosmosClient(cosmos_account)


@pytest.fixture
def rbac_model() -> Model:
    """Empty RBAC model with p and g sections."""
    model = Model()
    model.load_model_from_text(RBAC_MODEL)
    return model


@pytest.fixture
def model_factory():
    """Build additional empty RBAC models (e.g. to load into after a save)."""

    def _build() -> Model:
        model = Model()
        model.load_model_from_text(RBAC_MODEL)
        return model

    return _build
