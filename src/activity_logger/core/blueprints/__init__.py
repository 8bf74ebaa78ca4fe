"""Generic CRUD layer serving default REST handlers for registered models."""

from activity_logger.core.blueprints.actions import (
    BlueprintAction,
    Blueprints,
    FinalizedResponse,
    on_response_finalized,
)


__all__ = [
    "BlueprintAction",
    "Blueprints",
    "FinalizedResponse",
    "on_response_finalized",
]
