"""Infrastructure layer - Adapters and external integrations.

Structure:
- authorization/: Casbin adapters over Azure Cosmos DB
- persistence/: Query builders for the policy container
- logging/: structlog-backed LoggerProtocol implementation

The infrastructure layer depends on the domain layer but the domain layer
does NOT depend on infrastructure.
"""
