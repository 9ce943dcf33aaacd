"""Test suite for casbin-cosmosdb-adapter.

- unit/: Domain logic, query builders, config and container in isolation
- integration/: Adapters end to end against the in-memory Cosmos DB double,
  a real casbin Model/Enforcer, and real structlog output
"""
