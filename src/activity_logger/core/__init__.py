"""Core infrastructure: activity capture, database, errors, logging."""
