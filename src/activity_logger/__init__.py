"""Activity logger - attributed, diffable audit trail for CRUD mutations."""

__version__ = "0.1.0"
