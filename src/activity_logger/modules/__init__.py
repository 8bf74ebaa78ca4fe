"""Host feature modules whose models are served by the generic CRUD routes."""

from activity_logger.core.database.base import Base
from activity_logger.modules.users.models import User


def default_models() -> dict[str, type[Base]]:
    """Entity type -> model for every model shipped with the application."""
    return {
        "user": User,
    }
