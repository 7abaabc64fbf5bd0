"""Exception hierarchy for the Dagunzi game engine."""

from typing import Sequence


class DagunziException(Exception):
    """Base exception for Dagunzi game errors."""

    pass


class GameStateException(DagunziException):
    """Raised when the engine is in the wrong phase for the requested action."""

    pass


class IllegalPlayException(DagunziException):
    """Raised when a seat attempts an illegal card play."""

    def __init__(self, seat: int, cards: Sequence["Card"], reason: str):  # noqa: F821
        self.seat = seat
        self.cards = list(cards)
        self.reason = reason
        shown = ", ".join(str(card) for card in self.cards)
        super().__init__(f"Seat {seat} played [{shown}] illegally: {reason}")


class ResourceExhaustedException(DagunziException):
    """Raised when dealing more cards than remain or burying the wrong count."""

    pass


class InvalidDeclarationException(DagunziException):
    """Raised for a trump declaration, burial or tribute the seat is not entitled to."""

    pass
