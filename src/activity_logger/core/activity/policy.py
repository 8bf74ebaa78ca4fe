"""Tracking policy: which entity types get audited."""

from collections.abc import Iterable


class TrackingPolicy:
    """Allow-list predicate over entity types.

    Pure and side-effect free; safe to call with unvalidated input.
    """

    def __init__(self, models: Iterable[str] = ()) -> None:
        self.models = frozenset(models)

    def should_track(self, entity_type: object) -> bool:
        """Return True if mutations on ``entity_type`` should be audited."""
        if not entity_type or not isinstance(entity_type, str):
            return False
        return entity_type in self.models
