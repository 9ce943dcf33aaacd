"""Authorization infrastructure package.

Casbin persistence adapters for Azure Cosmos DB:
- cosmos_adapter.py: Adapter for casbin.Enforcer (blocking)
- async_cosmos_adapter.py: AsyncAdapter for casbin.AsyncEnforcer
"""
