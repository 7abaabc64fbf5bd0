"""Card tracking for opponent modeling."""

from dagunzi.tracker.card_tracker import CardTracker

__all__ = ["CardTracker"]
