"""
A utility module for shared, Numba-jitted functions used by the shoe and
the strategy engine for the small numeric kernels they run on every card.
"""
import numpy as np
from numba import njit

@njit(cache=True)
def total_cards(counts: np.ndarray) -> int:
    """Sums the per-rank remaining counts."""
    total = 0
    for i in range(counts.shape[0]):
        total += counts[i]
    return total

@njit(cache=True)
def masked_total(counts: np.ndarray, mask: np.ndarray) -> int:
    """Sums remaining counts for the ranks selected by a boolean mask."""
    total = 0
    for i in range(counts.shape[0]):
        if mask[i]:
            total += counts[i]
    return total

@njit(cache=True)
def get_hand_total(card_values: np.ndarray) -> tuple[int, bool]:
    """
    Calculates hand value from blackjack point values (ace given as 11).
    Returns (total, is_soft). is_soft is True if an Ace is still counted as 11.
    """
    total = 0
    aces = 0
    for value in card_values:
        if value == 11:
            aces += 1
        total += value

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total, aces > 0
