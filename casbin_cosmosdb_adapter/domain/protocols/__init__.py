"""Domain protocols (ports)."""

from casbin_cosmosdb_adapter.domain.protocols.logger_protocol import LoggerProtocol

__all__ = ["LoggerProtocol"]
