"""Clock and randomness seams for the otherwise pure transformation core."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class Clock(Protocol):
    """Source of the current local time."""

    def now(self) -> datetime:
        ...


@runtime_checkable
class RandomSource(Protocol):
    """
    Source of random choices.

    The stdlib ``random`` module and any ``random.Random`` instance satisfy
    this protocol, so tests can pass ``random.Random(seed)``.
    """

    def choice(self, seq: Sequence[T]) -> T:
        ...

    def randint(self, a: int, b: int) -> int:
        ...


class SystemClock:
    """Wall-clock time from the host."""

    def now(self) -> datetime:
        return datetime.now()
