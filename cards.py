"""
Card ranks as the counting engine sees them.

Suits never matter for counting or strategy, and the four ten-valued ranks
collapse into a single TEN bucket, so a shoe is fully described by ten ranks.
"""
from __future__ import annotations
from enum import Enum

FACE_CARDS = {"J", "Q", "K"}


class InvalidRankError(ValueError):
    """Raised when a value cannot be read as one of the ten shoe ranks."""


class Rank(Enum):
    """The ten distinct ranks tracked by the shoe."""
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    ACE = "A"

    def __str__(self) -> str:
        return self.value

    @property
    def blackjack_value(self) -> int:
        """Point value with the ace counted high."""
        if self is Rank.ACE:
            return 11
        return int(self.value)

    @property
    def index(self) -> int:
        """Position of the rank in the shoe's count array."""
        return _RANK_INDEX[self]

    def capacity(self, decks: int) -> int:
        """Number of cards of this rank in a full shoe of `decks` decks."""
        return decks * (16 if self is Rank.TEN else 4)


RANKS: tuple[Rank, ...] = tuple(Rank)
_RANK_INDEX = {rank: i for i, rank in enumerate(RANKS)}


class CountBucket(Enum):
    """The three quick-count buttons: low cards, neutral cards, high cards."""
    LOW = 1
    NEUTRAL = 0
    HIGH = -1


# Fixed priority order used when only the bucket of a dealt card is known.
BUCKET_RANKS: dict[CountBucket, tuple[Rank, ...]] = {
    CountBucket.LOW: (Rank.TWO, Rank.THREE, Rank.FOUR, Rank.FIVE, Rank.SIX),
    CountBucket.NEUTRAL: (Rank.SEVEN, Rank.EIGHT, Rank.NINE),
    CountBucket.HIGH: (Rank.TEN, Rank.ACE),
}


def parse_rank(value: Rank | str | int) -> Rank:
    """
    Converts user input into a Rank.

    Accepts a Rank, rank text ('2'-'10', 'A', case-insensitive) or an integer
    from 2 to 10. Aces are only accepted as Rank.ACE or "A".

    Raises:
        InvalidRankError: If the value is not one of the ten shoe ranks.
    """
    if isinstance(value, Rank):
        return value
    if isinstance(value, bool):
        raise InvalidRankError(f"Invalid rank: {value!r}")
    if isinstance(value, int):
        if 2 <= value <= 10:
            return Rank(str(value))
        raise InvalidRankError(f"Invalid rank: {value!r}")
    if isinstance(value, str):
        text = value.strip().upper()
        try:
            return Rank(text)
        except ValueError:
            pass
    raise InvalidRankError(f"Invalid rank: {value!r}")


def parse_card(card: str) -> Rank:
    """
    Reads a single card as typed by a player, folding J/Q/K into TEN.

    A trailing suit letter is tolerated ('KH', '10S'), matching how cards are
    usually written down at the table.
    """
    text = card.strip().upper()
    if text in FACE_CARDS:
        return Rank.TEN
    if len(text) > 1 and text[-1] in "SHDC":
        stripped = text[:-1]
        if stripped in FACE_CARDS:
            return Rank.TEN
        try:
            return parse_rank(stripped)
        except InvalidRankError:
            pass
    return parse_rank(text)


def parse_card_list(text: str) -> tuple[list[Rank], list[str]]:
    """
    Splits comma-separated card input like '10,J,A,7,3'.

    Returns:
        A tuple of (parsed ranks in input order, entries that could not be read).
    """
    ranks: list[Rank] = []
    rejected: list[str] = []
    for chunk in text.split(","):
        entry = chunk.strip()
        if not entry:
            continue
        try:
            ranks.append(parse_card(entry))
        except InvalidRankError:
            rejected.append(entry)
    return ranks, rejected
