"""API layer: shared dependencies and the root router."""
