"""Upload preprocessing helpers for API adapters."""
