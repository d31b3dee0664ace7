"""Analytics engine services."""
