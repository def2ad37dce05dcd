"""
Table rules and the house-edge / EV model built on them.

The house edge starts from a reference value for a canonical six-deck game
(S17, DAS, 3:2, no surrender) and adds a fixed delta for every rule that
differs. The deltas are purely additive: joint-rule interaction effects
present in published EV tables are not modeled, so the result is an
approximation good to a few hundredths of a percent at best.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
import logging

from counting import DEFAULT_COUNTING_SYSTEM, get_counting_system

LOGGER = logging.getLogger(__name__)

BLACKJACK_PAYOUTS = {1.5: "3:2", 1.2: "6:5", 2.0: "2:1"}

# House edge in percentage points for 6 decks, S17, DAS, 3:2, no surrender.
REFERENCE_HOUSE_EDGE = 0.40
REFERENCE_DECKS = 6
REFERENCE_PENETRATION = 0.75

# Player advantage gained per unit of true count, in percentage points.
ADVANTAGE_PER_TRUE_COUNT = 0.5

RULE_DELTAS = {
    "dealer_hits_soft_17": 0.20,
    "six_to_five": 1.45,
    "two_to_one": -2.30,
    "enhc": 0.10,
    "no_das": 0.14,
    "late_surrender": -0.07,
    "early_surrender": -0.62,
    "resplit_aces": -0.03,
    "hit_split_aces": -0.03,
}
DECK_COUNT_COEFFICIENT = 0.576
PENETRATION_COEFFICIENT = 0.20


@dataclass(frozen=True)
class Rules:
    """Casino rule set. Defaults are the canonical six-deck Vegas game."""

    # Shoe
    num_decks: int = 6
    penetration: float = 0.75

    # Dealer and payout
    dealer_hits_soft_17: bool = False
    blackjack_pays: float = 1.5
    enhc: bool = False

    # Player options
    das: bool = True
    late_surrender: bool = False
    early_surrender: bool = False
    insurance: bool = True
    resplit_aces: bool = False
    hit_split_aces: bool = False

    # Counting and bet sizing
    counting_system: str = DEFAULT_COUNTING_SYSTEM
    wong_out_threshold: float = -1.0
    max_bet_units: int = 8

    def __post_init__(self) -> None:
        if not isinstance(self.num_decks, int) or isinstance(self.num_decks, bool) or self.num_decks < 1:
            raise ValueError("num_decks must be a positive integer")
        if not 0.0 < self.penetration <= 1.0:
            raise ValueError("penetration must be in (0, 1]")
        if self.blackjack_pays not in BLACKJACK_PAYOUTS:
            raise ValueError(
                f"blackjack_pays must be one of {sorted(BLACKJACK_PAYOUTS)}, got {self.blackjack_pays}"
            )
        if not isinstance(self.max_bet_units, int) or isinstance(self.max_bet_units, bool) or self.max_bet_units < 1:
            raise ValueError("max_bet_units must be an integer of at least 1")
        get_counting_system(self.counting_system)

    @property
    def surrender_allowed(self) -> bool:
        return self.late_surrender or self.early_surrender

    def label(self) -> str:
        """Short table description, e.g. '6D S17 DAS 3:2'."""
        parts = [
            f"{self.num_decks}D",
            "H17" if self.dealer_hits_soft_17 else "S17",
            "DAS" if self.das else "No DAS",
            BLACKJACK_PAYOUTS[self.blackjack_pays],
        ]
        if self.early_surrender:
            parts.append("ES")
        elif self.late_surrender:
            parts.append("LS")
        if self.enhc:
            parts.append("ENHC")
        return " ".join(parts)

    def with_changes(self, **changes) -> "Rules":
        return replace(self, **changes)


RULE_PRESETS: dict[str, Rules] = {
    "standard-vegas-6d": Rules(),
    "downtown-2d-h17": Rules(num_decks=2, penetration=0.65, dealer_hits_soft_17=True, das=False),
    "six-five-h17": Rules(num_decks=6, dealer_hits_soft_17=True, blackjack_pays=1.2),
    "european-enhc": Rules(num_decks=6, enhc=True),
}


def get_preset(name: str) -> Rules:
    try:
        return RULE_PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown rules preset '{name}'. Available: {', '.join(sorted(RULE_PRESETS))}") from None


def rule_deltas(rules: Rules) -> dict[str, float]:
    """
    Lists each rule's contribution to the house edge relative to the
    reference game, in percentage points (positive favors the house).
    Rules that match the reference game are omitted.
    """
    deltas: dict[str, float] = {}
    if rules.dealer_hits_soft_17:
        deltas["dealer_hits_soft_17"] = RULE_DELTAS["dealer_hits_soft_17"]
    if rules.blackjack_pays == 1.2:
        deltas["six_to_five"] = RULE_DELTAS["six_to_five"]
    elif rules.blackjack_pays == 2.0:
        deltas["two_to_one"] = RULE_DELTAS["two_to_one"]
    if rules.enhc:
        deltas["enhc"] = RULE_DELTAS["enhc"]
    if not rules.das:
        deltas["no_das"] = RULE_DELTAS["no_das"]
    # Early surrender already includes everything late surrender offers.
    if rules.early_surrender:
        deltas["early_surrender"] = RULE_DELTAS["early_surrender"]
    elif rules.late_surrender:
        deltas["late_surrender"] = RULE_DELTAS["late_surrender"]
    if rules.resplit_aces:
        deltas["resplit_aces"] = RULE_DELTAS["resplit_aces"]
    if rules.hit_split_aces:
        deltas["hit_split_aces"] = RULE_DELTAS["hit_split_aces"]
    if rules.num_decks != REFERENCE_DECKS:
        deltas["num_decks"] = DECK_COUNT_COEFFICIENT * (1 / REFERENCE_DECKS - 1 / rules.num_decks)
    if rules.penetration != REFERENCE_PENETRATION:
        deltas["penetration"] = -PENETRATION_COEFFICIENT * (rules.penetration - REFERENCE_PENETRATION)
    return deltas


def base_house_edge(rules: Rules) -> float:
    """Off-the-top house edge in percentage points for a rule set."""
    return REFERENCE_HOUSE_EDGE + sum(rule_deltas(rules).values())


def count_adjusted_ev(base_edge: float, true_count: float, rules: Rules) -> float:
    """
    Player EV in percent given the current (unrounded) true count.

    Positive values favor the player. Each point of true count is worth
    ADVANTAGE_PER_TRUE_COUNT, scaled by the counting system's efficiency.
    """
    system = get_counting_system(rules.counting_system)
    return -base_edge + true_count * ADVANTAGE_PER_TRUE_COUNT * system.advantage_scale
