"""External API integrations."""
