"""Persistence helpers: Cosmos SQL query builders."""
