"""
Provides high-level betting advice from the count: the bet-spread step
function and a plain-text summary of the shoe's state. This module focuses on
betting strategy and overall game-state awareness; playing decisions live in
the decision_advisor module.
"""
from __future__ import annotations
from typing import TYPE_CHECKING
import math

from cards import CountBucket, Rank
from counting import round_true_count

if TYPE_CHECKING:
    from rules import Rules
    from session import Session


def recommend_bet_units(true_count: float, rules: 'Rules') -> int:
    """
    Bet size in units for the current (unrounded) true count.

    At or below the wong-out threshold the answer is 0 (sit out). Above it
    the bet is one unit, then one more unit per whole true count from +2 up,
    capped at rules.max_bet_units. Non-decreasing in the true count.
    """
    if true_count <= rules.wong_out_threshold:
        return 0
    return min(rules.max_bet_units, max(1, math.floor(true_count)))


class StrategyAdvisor:
    """
    Turns the session's count state into a list of readable advice lines.
    """
    def __init__(self, config: dict | None = None):
        """
        Initializes the advisor with a given configuration.
        """
        self.config = config or {
            'insurance_threshold': 3,
            'rich_in_tens_threshold': 0.35,
            'favorable_ev_threshold': 0.0,
        }

    def generate_recommendations(self, session: 'Session') -> list[str]:
        """
        Generates a list of string-based recommendations for the player.
        """
        recommendations = []
        rules = session.rules
        tc = session.true_count()

        # --- Main Bet Strategy ---
        ev = session.count_adjusted_ev()
        units = session.recommended_bet_units()
        recommendations.append("--- Main Bet Strategy ---")
        recommendations.append(f"Table: {rules.label()}, base house edge {session.base_house_edge():.2f}%.")
        recommendations.append(
            f"Running Count: {session.running_count():+d}, True Count: {tc:+.1f} "
            f"({session.decks_remaining():.1f} decks left)."
        )
        if units == 0:
            recommendations.append(f"Player Advantage: {ev:+.2f}%. Count too low, sit out (wong out).")
        elif ev > self.config.get('favorable_ev_threshold', 0.0):
            recommendations.append(f"Player Advantage: {ev:+.2f}%. Favorable shoe.")
            recommendations.append(f"Bet {units} unit{'s' if units != 1 else ''}.")
        else:
            recommendations.append(f"Player Advantage: {ev:+.2f}%. No edge. Bet table minimum (1 unit).")

        if rules.insurance and round_true_count(tc) >= self.config.get('insurance_threshold', 3):
            recommendations.append("Insurance: take it if the dealer shows an Ace.")

        # --- Shoe Composition ---
        recommendations.append("\n--- Shoe Composition ---")
        breakdown = session.cards_by_count_category()
        labels = {
            CountBucket.LOW: "Low (2-6)",
            CountBucket.NEUTRAL: "Neutral (7-9)",
            CountBucket.HIGH: "High (10, A)",
        }
        recommendations.append(
            ", ".join(f"{labels[bucket]}: {count} ({pct:.1f}%)" for bucket, (count, pct) in breakdown.items())
        )
        remaining = session.shoe.total_cards
        if remaining and session.shoe.remaining(Rank.TEN) / remaining > self.config.get('rich_in_tens_threshold', 0.35):
            recommendations.append("Insight: Shoe is rich in 10-value cards.")

        if session.shoe.reached_penetration(rules.penetration):
            recommendations.append(
                f"\nALERT: Penetration reached ({session.shoe.penetration():.0%}); expect a reshuffle."
            )

        return recommendations
