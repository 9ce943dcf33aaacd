"""Logging adapters implementing LoggerProtocol."""
