from __future__ import annotations
from dataclasses import dataclass
import logging

import numpy as np

from cards import BUCKET_RANKS, RANKS, CountBucket, Rank, parse_rank
from counting import CARDS_PER_DECK, CountingSystem, decks_remaining, true_count
from numba_utils import masked_total, total_cards

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """Everything needed to reverse one dealt card exactly."""
    rank: Rank
    weight: int
    prior_running_count: int
    prior_remaining: np.ndarray


class Shoe:

    def __init__(self, counting_system: CountingSystem, decks: int = 6):
        """
        Initializes a full shoe bound to a counting system.

        Args:
            counting_system (CountingSystem): Supplies the tag for each dealt rank.
            decks (int): The number of 52-card decks to include in the shoe.
        """
        self.counting_system = counting_system
        self.decks: int = 0
        self.running_count: int = 0
        self.cards: np.ndarray = np.zeros(len(RANKS), dtype=np.int64)
        self.capacities: np.ndarray = np.zeros(len(RANKS), dtype=np.int64)
        self.history: list[HistoryEntry] = []
        self.reset(decks)

    def __repr__(self) -> str:
        """Provides a developer-friendly representation of the Shoe object."""
        return (
            f"<Shoe(decks={self.decks}, system={self.counting_system.id}, "
            f"cards_remaining={self.total_cards}/{self.initial_card_count}, "
            f"running_count={self.running_count})>"
        )

    @property
    def initial_card_count(self) -> int:
        return CARDS_PER_DECK * self.decks

    @property
    def total_cards(self) -> int:
        return int(total_cards(self.cards))

    @property
    def cards_dealt(self) -> int:
        return self.initial_card_count - self.total_cards

    @property
    def history_depth(self) -> int:
        return len(self.history)

    @property
    def last_entry(self) -> HistoryEntry | None:
        return self.history[-1] if self.history else None

    def reset(self, decks: int | None = None) -> None:
        """
        Resets the shoe to its original state with all cards present, a zero
        running count and no history.

        Args:
            decks (int | None): New deck count; keeps the current one if omitted.

        Raises:
            ValueError: If the deck count is not a positive integer.
        """
        if decks is not None:
            if not isinstance(decks, int) or isinstance(decks, bool) or decks <= 0:
                raise ValueError("Number of decks must be a positive integer.")
            self.decks = decks
        self.capacities = np.array([rank.capacity(self.decks) for rank in RANKS], dtype=np.int64)
        self.cards = self.capacities.copy()
        self.running_count = 0
        self.history.clear()
        LOGGER.info("Shoe reset: %d decks, %d cards", self.decks, self.initial_card_count)

    def apply(self, rank: Rank | str) -> bool:
        """
        Records a dealt card: removes it from the shoe and adds its tag to the
        running count. The pre-deal state is pushed onto the history.

        Returns:
            bool: False if no card of that rank is left (nothing changes).
        """
        rank = parse_rank(rank)
        i = rank.index
        if self.cards[i] == 0:
            LOGGER.debug("Ignoring %s: none left in the shoe", rank)
            return False

        weight = self.counting_system.weight(rank)
        self.history.append(
            HistoryEntry(
                rank=rank,
                weight=weight,
                prior_running_count=self.running_count,
                prior_remaining=self.cards.copy(),
            )
        )
        self.cards[i] -= 1
        self.running_count += weight
        LOGGER.debug("Dealt %s (%+d): running count %d", rank, weight, self.running_count)
        return True

    def remove(self, rank: Rank | str) -> bool:
        """
        Puts a card back into the shoe to correct an input error. This is not
        recorded in the history, so it cannot be undone.

        Returns:
            bool: False if the shoe already holds every card of that rank.
        """
        rank = parse_rank(rank)
        i = rank.index
        if self.cards[i] >= self.capacities[i]:
            LOGGER.debug("Ignoring correction of %s: already at capacity", rank)
            return False

        weight = self.counting_system.weight(rank)
        self.cards[i] += 1
        self.running_count -= weight
        LOGGER.debug("Restored %s (%+d): running count %d", rank, -weight, self.running_count)
        return True

    def undo(self) -> bool:
        """
        Reverses the most recent dealt card by restoring the saved snapshot.

        Returns:
            bool: False if there is nothing to undo.
        """
        if not self.history:
            LOGGER.debug("Nothing to undo")
            return False
        entry = self.history.pop()
        self.running_count = entry.prior_running_count
        self.cards = entry.prior_remaining.copy()
        LOGGER.debug("Undid %s: running count %d", entry.rank, self.running_count)
        return True

    def quick_apply(self, bucket: CountBucket | int) -> Rank | None:
        """
        Deals a card known only by its count bucket, taking the first rank of
        the bucket that still has cards left (2-6, then 7-9, then 10 and A).

        Returns:
            Rank | None: The rank that was dealt, or None if the bucket is empty.
        """
        bucket = CountBucket(bucket)
        for rank in BUCKET_RANKS[bucket]:
            if self.cards[rank.index] > 0:
                self.apply(rank)
                return rank
        LOGGER.debug("No %s cards left for a quick count", bucket.name.lower())
        return None

    def remaining(self, rank: Rank | str) -> int:
        return int(self.cards[parse_rank(rank).index])

    def capacity(self, rank: Rank | str) -> int:
        return int(self.capacities[parse_rank(rank).index])

    def snapshot(self) -> dict[Rank, int]:
        """
        Returns a copy of the remaining cards per rank.

        Returns:
            dict[Rank, int]: Remaining count for each of the ten ranks.
        """
        return {rank: int(self.cards[rank.index]) for rank in RANKS}

    def decks_remaining(self) -> float:
        """
        Calculates the number of decks remaining in the shoe.

        Returns:
            float: The fractional number of decks left, used for true count calculation.
        """
        return decks_remaining(self.total_cards)

    def true_count(self) -> float:
        return true_count(self.running_count, self.decks_remaining())

    def penetration(self) -> float:
        """
        Calculates the shoe penetration as a fraction.

        Returns:
            float: A value between 0.0 and 1.0 representing the fraction of
                   cards that have been dealt from the shoe.
        """
        if self.initial_card_count == 0:
            return 0.0
        return self.cards_dealt / self.initial_card_count

    def reached_penetration(self, target: float) -> bool:
        """True once the dealt fraction reaches the reshuffle point."""
        return self.penetration() >= target

    def cards_by_count_category(self) -> dict[CountBucket, tuple[int, float]]:
        """
        Groups the remaining cards into the low (2-6), neutral (7-9) and high
        (10, A) buckets.

        Returns:
            dict[CountBucket, tuple[int, float]]: Card count and percentage of
            the remaining shoe for each bucket. Percentages are 0.0 for an
            empty shoe.
        """
        remaining = self.total_cards
        breakdown = {}
        for bucket, ranks in BUCKET_RANKS.items():
            mask = np.zeros(len(RANKS), dtype=np.bool_)
            for rank in ranks:
                mask[rank.index] = True
            count = int(masked_total(self.cards, mask))
            percent = count / remaining * 100 if remaining > 0 else 0.0
            breakdown[bucket] = (count, percent)
        return breakdown
