"""
Provides player decision advice based on basic strategy tables, true count
index plays, surrender and insurance rules.

Decisions run through four tiers and the first one that applies wins:
insurance (reported next to the action, never instead of it), surrender,
index deviations, then the basic strategy tables. The tables are total over
every hand the engine accepts, so a lookup miss is a data defect.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Sequence
import logging

import numpy as np

from cards import RANKS, Rank, parse_card, parse_rank
from counting import round_true_count
from numba_utils import get_hand_total
from rules import base_house_edge, count_adjusted_ev
from strategy import recommend_bet_units

if TYPE_CHECKING:
    from rules import Rules

LOGGER = logging.getLogger(__name__)


class MissingStrategyEntryError(LookupError):
    """Raised when the basic strategy tables have no entry for a hand."""


class Action(Enum):
    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    SURRENDER = "surrender"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class HandType(Enum):
    HARD = "hard"
    SOFT = "soft"
    PAIR = "pair"

    @classmethod
    def parse(cls, value: HandType | str) -> HandType:
        if isinstance(value, HandType):
            return value
        text = str(value).strip().lower()
        if text == "pairs":
            text = "pair"
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Invalid hand type: {value!r}") from None


# Hard and soft hands use the hand total (A,8 is soft 19); pairs use the
# point value of one card, with 11 for aces.
HAND_VALUES: dict[HandType, range] = {
    HandType.HARD: range(4, 22),
    HandType.SOFT: range(13, 22),
    HandType.PAIR: range(2, 12),
}


@dataclass(frozen=True)
class HandQuery:
    """One hand to advise on: what the player holds against the upcard."""
    hand_type: HandType
    hand_value: int
    dealer_upcard: Rank

    def __post_init__(self) -> None:
        if self.hand_value not in HAND_VALUES[self.hand_type]:
            bounds = HAND_VALUES[self.hand_type]
            raise ValueError(
                f"{self.hand_type.value} hand value must be between {bounds.start} and "
                f"{bounds.stop - 1}, got {self.hand_value}"
            )

    @classmethod
    def create(cls, hand_type: HandType | str, hand_value: int | str, dealer_upcard: Rank | str | int) -> HandQuery:
        """Builds a query from loose user input ('pairs', 'A', '16', ...)."""
        kind = HandType.parse(hand_type)
        if kind is HandType.PAIR:
            # A pair of aces may also be given by its point value.
            if isinstance(hand_value, (int, str)) and str(hand_value).strip() == "11":
                value = Rank.ACE.blackjack_value
            else:
                value = parse_rank(hand_value).blackjack_value
        else:
            try:
                value = int(hand_value)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid hand value: {hand_value!r}") from None
        return cls(kind, value, parse_rank(dealer_upcard))

    def describe(self) -> str:
        if self.hand_type is HandType.PAIR:
            card = "A" if self.hand_value == 11 else str(self.hand_value)
            return f"pair of {card}s vs {self.dealer_upcard}"
        return f"{self.hand_type.value} {self.hand_value} vs {self.dealer_upcard}"


@dataclass(frozen=True)
class IndexPlay:
    """Deviation from basic strategy once the rounded true count reaches a threshold."""
    hand_type: HandType
    hand_value: int
    dealer_upcard: Rank
    min_true_count: int
    action: Action

    def matches(self, query: HandQuery) -> bool:
        return (
            self.hand_type is query.hand_type
            and self.hand_value == query.hand_value
            and self.dealer_upcard is query.dealer_upcard
        )


@dataclass(frozen=True)
class Recommendation:
    action: Action
    reasoning: str
    take_insurance: bool
    count_adjusted_ev: float
    recommended_bet_units: int
    tier: str
    true_count: float

    def to_dict(self) -> dict:
        return {
            "recommended_action": self.action.value,
            "reasoning": self.reasoning,
            "take_insurance": self.take_insurance,
            "count_adjusted_ev": round(self.count_adjusted_ev, 2),
            "recommended_bet_units": self.recommended_bet_units,
        }


INDEX_PLAYS: tuple[IndexPlay, ...] = (
    IndexPlay(HandType.HARD, 16, Rank.TEN, 0, Action.STAND),
    IndexPlay(HandType.HARD, 15, Rank.TEN, 4, Action.STAND),
    IndexPlay(HandType.HARD, 10, Rank.TEN, 4, Action.DOUBLE),
    IndexPlay(HandType.HARD, 10, Rank.ACE, 4, Action.DOUBLE),
    IndexPlay(HandType.HARD, 12, Rank.THREE, 2, Action.STAND),
    IndexPlay(HandType.HARD, 12, Rank.TWO, 3, Action.STAND),
    IndexPlay(HandType.HARD, 11, Rank.ACE, 1, Action.DOUBLE),
    IndexPlay(HandType.HARD, 9, Rank.TWO, 1, Action.DOUBLE),
    IndexPlay(HandType.HARD, 9, Rank.SEVEN, 3, Action.DOUBLE),
    IndexPlay(HandType.SOFT, 19, Rank.SIX, 3, Action.DOUBLE),
    IndexPlay(HandType.PAIR, 9, Rank.SEVEN, 3, Action.SPLIT),
    IndexPlay(HandType.PAIR, 10, Rank.SIX, 4, Action.SPLIT),
    IndexPlay(HandType.PAIR, 10, Rank.FIVE, 5, Action.SPLIT),
    IndexPlay(HandType.HARD, 16, Rank.NINE, 5, Action.STAND),
)

STRATEGY_CONFIG = {
    "insurance_threshold": 3,
    "surrender_hands": frozenset({
        (16, Rank.NINE),
        (16, Rank.TEN),
        (16, Rank.ACE),
        (15, Rank.TEN),
    }),
    "index_plays": INDEX_PLAYS,
}

# --- Basic strategy charts ---
# One letter per dealer upcard, in the order 2 3 4 5 6 7 8 9 10 A.
# H = hit, S = stand, D = double, P = split.

_CODES = {"H": Action.HIT, "S": Action.STAND, "D": Action.DOUBLE, "P": Action.SPLIT}

HARD_CHART = {
    4: "HHHHHHHHHH", 5: "HHHHHHHHHH", 6: "HHHHHHHHHH", 7: "HHHHHHHHHH", 8: "HHHHHHHHHH",
    9: "HDDDDHHHHH",
    10: "DDDDDDDDHH",
    11: "DDDDDDDDDH",
    12: "HHSSSHHHHH",
    13: "SSSSSHHHHH", 14: "SSSSSHHHHH", 15: "SSSSSHHHHH", 16: "SSSSSHHHHH",
    17: "SSSSSSSSSS", 18: "SSSSSSSSSS", 19: "SSSSSSSSSS", 20: "SSSSSSSSSS", 21: "SSSSSSSSSS",
}
HARD_CHART_H17 = {11: "DDDDDDDDDD"}

SOFT_CHART = {
    13: "HHHDDHHHHH",
    14: "HHHDDHHHHH",
    15: "HHDDDHHHHH",
    16: "HHDDDHHHHH",
    17: "HDDDDHHHHH",
    18: "SDDDDSSHHH",
    19: "SSSSSSSSSS",
    20: "SSSSSSSSSS",
    21: "SSSSSSSSSS",
}
SOFT_CHART_H17 = {18: "DDDDDSSHHH", 19: "SSSSDSSSSS"}

PAIR_CHART = {
    2: "PPPPPPHHHH",
    3: "PPPPPPHHHH",
    4: "HHHPPHHHHH",
    5: "DDDDDDDDHH",
    6: "PPPPPHHHHH",
    7: "PPPPPPHHHH",
    8: "PPPPPPPPPP",
    9: "PPPPPSPPSS",
    10: "SSSSSSSSSS",
    11: "PPPPPPPPPP",
}
PAIR_CHART_NO_DAS = {
    2: "HHPPPPHHHH",
    3: "HHPPPPHHHH",
    4: "HHHHHHHHHH",
    6: "HPPPPHHHHH",
}


def _expand(chart: dict[int, str]) -> dict[tuple[int, Rank], Action]:
    table = {}
    for value, row in chart.items():
        if len(row) != len(RANKS):
            raise ValueError(f"Chart row for {value} has {len(row)} entries")
        for upcard, code in zip(RANKS, row):
            table[(value, upcard)] = _CODES[code]
    return table


def _build_tables() -> dict[tuple[bool, bool], dict[HandType, dict[tuple[int, Rank], Action]]]:
    """Builds the full table set keyed by (dealer hits soft 17, double after split)."""
    tables = {}
    for h17 in (False, True):
        hard = {**HARD_CHART, **(HARD_CHART_H17 if h17 else {})}
        soft = {**SOFT_CHART, **(SOFT_CHART_H17 if h17 else {})}
        for das in (False, True):
            pairs = {**PAIR_CHART, **({} if das else PAIR_CHART_NO_DAS)}
            tables[(h17, das)] = {
                HandType.HARD: _expand(hard),
                HandType.SOFT: _expand(soft),
                HandType.PAIR: _expand(pairs),
            }
    return tables


BASIC_STRATEGY_TABLES = _build_tables()


def basic_strategy_action(query: HandQuery, rules: Rules) -> Action:
    """
    Looks up the basic strategy action for a hand under the given rules.

    Raises:
        MissingStrategyEntryError: If the tables have no entry for the hand.
    """
    table = BASIC_STRATEGY_TABLES[(rules.dealer_hits_soft_17, rules.das)][query.hand_type]
    try:
        return table[(query.hand_value, query.dealer_upcard)]
    except KeyError:
        raise MissingStrategyEntryError(
            f"No basic strategy entry for {query.describe()}"
        ) from None


def _format_tc(value: int) -> str:
    return f"{value:+d}"


def recommend(
    query: HandQuery,
    true_count: float,
    rules: Rules,
    config: dict | None = None,
) -> Recommendation:
    """
    Recommends a blackjack action for a hand given the true count and rules.

    Args:
        query (HandQuery): The player's hand and the dealer upcard.
        true_count (float): The unrounded true count; tables use it rounded.
        rules (Rules): The table rules in play.
        config (dict | None): Overrides for STRATEGY_CONFIG.

    Returns:
        Recommendation: The action with its reasoning, insurance decision,
        count-adjusted EV and suggested bet size.
    """
    cfg = {**STRATEGY_CONFIG, **(config or {})}
    tc = round_true_count(true_count)

    # --- Insurance ---
    take_insurance = False
    insurance_note = ""
    if query.dealer_upcard is Rank.ACE and rules.insurance:
        threshold = cfg["insurance_threshold"]
        take_insurance = tc >= threshold
        if take_insurance:
            insurance_note = (
                f" Insurance: take it (TC {_format_tc(tc)} >= {_format_tc(threshold)})."
            )
        else:
            insurance_note = (
                f" Insurance: decline (TC {_format_tc(tc)} < {_format_tc(threshold)})."
            )

    action: Action | None = None
    tier = ""
    reasoning = ""

    # --- Surrender ---
    if (
        rules.surrender_allowed
        and query.hand_type is HandType.HARD
        and (query.hand_value, query.dealer_upcard) in cfg["surrender_hands"]
    ):
        action = Action.SURRENDER
        tier = "surrender"
        kind = "Early" if rules.early_surrender else "Late"
        reasoning = f"{kind} surrender: {query.describe()}."

    # --- Index plays ---
    if action is None:
        for play in cfg["index_plays"]:
            if play.matches(query) and tc >= play.min_true_count:
                action = play.action
                tier = "index"
                reasoning = (
                    f"Index play {_format_tc(play.min_true_count)}: {action.label} "
                    f"{query.describe()} (TC {_format_tc(tc)})."
                )
                break

    # --- Basic strategy ---
    if action is None:
        action = basic_strategy_action(query, rules)
        tier = "basic"
        reasoning = (
            f"Basic strategy ({'H17' if rules.dealer_hits_soft_17 else 'S17'}"
            f"{', DAS' if rules.das else ''}): {action.label} {query.describe()}."
        )

    LOGGER.debug("%s -> %s via %s tier at TC %.2f", query.describe(), action.value, tier, true_count)
    return Recommendation(
        action=action,
        reasoning=reasoning + insurance_note,
        take_insurance=take_insurance,
        count_adjusted_ev=count_adjusted_ev(base_house_edge(rules), true_count, rules),
        recommended_bet_units=recommend_bet_units(true_count, rules),
        tier=tier,
        true_count=true_count,
    )


def classify_hand(cards: Sequence[Rank | str]) -> tuple[HandType, int]:
    """
    Reads a hand the way a player does: two equal ranks are a pair, a usable
    ace makes it soft, anything else is hard.

    Returns:
        tuple[HandType, int]: The hand type and value for a HandQuery.

    Raises:
        ValueError: If fewer than two cards are given or the hand is bust.
    """
    if len(cards) < 2:
        raise ValueError("A hand needs at least two cards.")
    ranks = [card if isinstance(card, Rank) else parse_card(card) for card in cards]
    if len(ranks) == 2 and ranks[0] is ranks[1]:
        return HandType.PAIR, ranks[0].blackjack_value

    values = np.array([rank.blackjack_value for rank in ranks], dtype=np.int64)
    total, is_soft = get_hand_total(values)
    total = int(total)
    if total > 21:
        raise ValueError(f"Hand {', '.join(str(r) for r in ranks)} is bust ({total}).")
    return (HandType.SOFT if is_soft else HandType.HARD), total
