"""Domain layer - rule shape and filters.

This layer has NO dependency on Cosmos DB or Casbin.

Structure:
- entities/: CasbinRule and its document mapping
- value_objects/: Filter and QuerySpec
- protocols/: LoggerProtocol
"""
