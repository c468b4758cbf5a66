"""Generation proxy endpoints."""
