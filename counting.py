"""
Implements the card counting systems and true count arithmetic for Blackjack.

Counting systems are immutable tag tables looked up by identifier from a
registry. The shoe owns the running count; this module only supplies the
weights and the true count conversion. New systems can be registered
without touching any caller.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping
import logging
import math

from cards import RANKS, Rank

LOGGER = logging.getLogger(__name__)

CARDS_PER_DECK = 52


class UnknownCountingSystemError(KeyError):
    """Raised when a counting system identifier is not registered."""


@dataclass(frozen=True)
class CountingSystem:
    """An immutable rank -> integer tag table."""
    id: str
    name: str
    tags: Mapping[Rank, int] = field(compare=False)
    # Multiplier on the per-true-count advantage for this system's index numbers.
    advantage_scale: float = 1.0

    def __post_init__(self) -> None:
        missing = [rank for rank in RANKS if rank not in self.tags]
        if missing:
            raise ValueError(
                f"Counting system '{self.id}' has no tag for: {', '.join(str(r) for r in missing)}"
            )
        for rank, tag in self.tags.items():
            if not isinstance(tag, int) or isinstance(tag, bool):
                raise ValueError(f"Counting system '{self.id}' tag for {rank} must be an integer.")
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    def weight(self, rank: Rank) -> int:
        """Returns the tag applied to the running count when `rank` is dealt."""
        return self.tags[rank]

    @property
    def full_deck_sum(self) -> int:
        """Sum of tags over one 52-card deck; zero for a balanced count."""
        return sum(self.tags[rank] * rank.capacity(1) for rank in RANKS)

    @property
    def is_balanced(self) -> bool:
        return self.full_deck_sum == 0


def _tags(two, three, four, five, six, seven, eight, nine, ten, ace) -> dict[Rank, int]:
    return dict(zip(RANKS, (two, three, four, five, six, seven, eight, nine, ten, ace)))


# The most common balanced, level-1 count.
HI_LO = CountingSystem(
    id="hi-lo",
    name="Hi-Lo",
    tags=_tags(1, 1, 1, 1, 1, 0, 0, 0, -1, -1),
)

# Hi-Lo with the 7 counted low; unbalanced.
KO = CountingSystem(
    id="ko",
    name="Knock-Out",
    tags=_tags(1, 1, 1, 1, 1, 1, 0, 0, -1, -1),
)

# Balanced, level-2.
ZEN = CountingSystem(
    id="zen",
    name="Zen Count",
    tags=_tags(1, 1, 2, 2, 2, 1, 0, 0, -2, -1),
)

# Balanced, level-2. Aces are neutral and often side-counted.
OMEGA_II = CountingSystem(
    id="omega-ii",
    name="Omega II",
    tags=_tags(1, 1, 2, 2, 2, 1, 0, -1, -2, 0),
)

_REGISTRY: dict[str, CountingSystem] = {
    system.id: system for system in (HI_LO, KO, ZEN, OMEGA_II)
}

DEFAULT_COUNTING_SYSTEM = HI_LO.id


def get_counting_system(system_id: str) -> CountingSystem:
    """
    Looks up a counting system by identifier.

    Raises:
        UnknownCountingSystemError: If no system is registered under `system_id`.
    """
    try:
        return _REGISTRY[system_id]
    except KeyError:
        raise UnknownCountingSystemError(
            f"Unknown counting system '{system_id}'. Available: {', '.join(available_systems())}"
        ) from None


def register_counting_system(system: CountingSystem, replace: bool = False) -> None:
    """Adds a counting system to the registry."""
    if system.id in _REGISTRY and not replace:
        raise ValueError(f"Counting system '{system.id}' is already registered.")
    _REGISTRY[system.id] = system
    LOGGER.info("Registered counting system %s (%s)", system.id, system.name)


def available_systems() -> list[str]:
    return sorted(_REGISTRY)


def decks_remaining(total_cards: int) -> float:
    """Fractional number of decks left in the shoe."""
    return total_cards / CARDS_PER_DECK


def true_count(running_count: float, decks_left: float) -> float:
    """
    Normalizes the running count by the decks left.

    Returns 0.0 when the shoe is empty rather than dividing by zero.
    """
    if decks_left <= 0:
        return 0.0
    return running_count / decks_left


def round_true_count(value: float) -> int:
    """Rounds a true count to the nearest integer, halves rounding up (-0.5 -> 0)."""
    return int(math.floor(value + 0.5))
