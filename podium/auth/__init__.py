"""Authorization rules for registry callers."""
