"""Users module."""

from activity_logger.modules.users.models import User


__all__ = ["User"]
