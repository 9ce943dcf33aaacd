"""In-memory test doubles for external services."""
