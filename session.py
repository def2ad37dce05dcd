"""
The session controller: one player's shoe, count and undo history together
with the rules they are playing under. Every card event and recommendation
request goes through a Session; nothing is kept at module level, so any
number of independent sessions can exist side by side.
"""
from __future__ import annotations
from typing import Sequence
import logging

from cards import CountBucket, Rank, parse_card_list
from counting import CountingSystem, get_counting_system
from decision_advisor import HandQuery, Recommendation, classify_hand, recommend
from rules import Rules, base_house_edge, count_adjusted_ev, get_preset
from shoe import Shoe
from strategy import recommend_bet_units

LOGGER = logging.getLogger(__name__)

QUICK_START_PRESET = "standard-vegas-6d"


class Session:

    def __init__(self, rules: Rules | None = None):
        self.rules: Rules = rules or Rules()
        self.counting_system: CountingSystem = get_counting_system(self.rules.counting_system)
        self.shoe = Shoe(self.counting_system, decks=self.rules.num_decks)

    def __repr__(self) -> str:
        return f"<Session({self.rules.label()}, {self.shoe!r})>"

    # --- Events ---

    def deal_card(self, rank: Rank | str) -> bool:
        return self.shoe.apply(rank)

    def correct_card(self, rank: Rank | str) -> bool:
        return self.shoe.remove(rank)

    def undo(self) -> bool:
        return self.shoe.undo()

    def reset(self, num_decks: int | None = None) -> None:
        """Starts a fresh shoe; a new deck count is written back into the rules."""
        if num_decks is not None and num_decks != self.rules.num_decks:
            self.rules = self.rules.with_changes(num_decks=num_decks)
        self.shoe.reset(self.rules.num_decks)

    def quick_count(self, bucket: CountBucket | int) -> Rank | None:
        return self.shoe.quick_apply(bucket)

    def deal_cards_text(self, text: str) -> list[Rank]:
        """
        Deals every card in comma-separated input such as '10,J,A,7,3'.
        Unreadable entries and ranks with no cards left are skipped.

        Returns:
            list[Rank]: The ranks that were actually dealt, in order.
        """
        ranks, rejected = parse_card_list(text)
        if rejected:
            LOGGER.debug("Skipping unreadable cards: %s", ", ".join(rejected))
        return [rank for rank in ranks if self.shoe.apply(rank)]

    def update_rules(self, rules: Rules) -> None:
        """
        Switches to a new rule set. Changing the deck count or the counting
        system invalidates the shoe, so both reset it.
        """
        needs_reset = (
            rules.num_decks != self.rules.num_decks
            or rules.counting_system != self.rules.counting_system
        )
        self.rules = rules
        if needs_reset:
            self.counting_system = get_counting_system(rules.counting_system)
            self.shoe = Shoe(self.counting_system, decks=rules.num_decks)
        LOGGER.info("Rules changed to %s%s", rules.label(), " (shoe reset)" if needs_reset else "")

    def quick_start(self) -> None:
        """Loads the standard six-deck Vegas rules on a fresh shoe."""
        self.update_rules(get_preset(QUICK_START_PRESET))
        self.shoe.reset()

    # --- Queries ---

    def shoe_snapshot(self) -> dict[Rank, int]:
        return self.shoe.snapshot()

    def running_count(self) -> int:
        return self.shoe.running_count

    def decks_remaining(self) -> float:
        return self.shoe.decks_remaining()

    def true_count(self) -> float:
        return self.shoe.true_count()

    def cards_by_count_category(self) -> dict[CountBucket, tuple[int, float]]:
        return self.shoe.cards_by_count_category()

    def base_house_edge(self) -> float:
        return base_house_edge(self.rules)

    def count_adjusted_ev(self) -> float:
        return count_adjusted_ev(self.base_house_edge(), self.true_count(), self.rules)

    def recommended_bet_units(self) -> int:
        return recommend_bet_units(self.true_count(), self.rules)

    def recommend(self, hand_type, hand_value, dealer_upcard) -> Recommendation:
        """Advice for a hand given as (type, value, upcard) against the current count."""
        query = HandQuery.create(hand_type, hand_value, dealer_upcard)
        return recommend(query, self.true_count(), self.rules)

    def recommend_for_cards(self, cards: Sequence[Rank | str], dealer_upcard: Rank | str) -> Recommendation:
        """Advice for a hand given as the player's cards, e.g. ['A', '7']."""
        hand_type, hand_value = classify_hand(cards)
        return self.recommend(hand_type, hand_value, dealer_upcard)
