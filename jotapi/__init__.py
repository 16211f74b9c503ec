"""HTTP layer for the Jot engine."""
