"""Storage backend implementations."""
