"""Domain types (record shapes, id rules)."""
