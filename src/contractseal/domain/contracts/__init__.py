"""Contract drafting, sharing and signing."""
