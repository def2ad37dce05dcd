import logging
import random

import pytest

from cards import CountBucket, InvalidRankError, Rank
from counting import HI_LO, get_counting_system
from shoe import Shoe


def make_shoe(decks: int = 6, system: str = "hi-lo") -> Shoe:
    return Shoe(get_counting_system(system), decks=decks)


def assert_within_capacity(shoe: Shoe):
    for rank in Rank:
        assert 0 <= shoe.remaining(rank) <= shoe.capacity(rank)


def test_fresh_shoe():
    shoe = make_shoe(6)
    assert shoe.total_cards == 312
    assert shoe.remaining(Rank.TEN) == 96
    assert shoe.remaining("A") == 24
    assert shoe.running_count == 0
    assert shoe.history_depth == 0
    assert shoe.penetration() == 0.0


def test_deal_a_five_in_six_decks():
    shoe = make_shoe(6)
    assert shoe.apply("5") is True
    assert shoe.running_count == 1
    assert shoe.remaining(Rank.FIVE) == 23
    assert shoe.decks_remaining() == pytest.approx(5.98, abs=0.005)
    assert shoe.true_count() == pytest.approx(0.17, abs=0.005)


def test_apply_then_undo_restores_exactly():
    shoe = make_shoe(2)
    shoe.apply(Rank.TEN)
    shoe.apply(Rank.THREE)
    before_counts = shoe.snapshot()
    before_rc = shoe.running_count
    for rank in Rank:
        assert shoe.apply(rank)
        assert shoe.undo()
        assert shoe.snapshot() == before_counts
        assert shoe.running_count == before_rc
    assert shoe.history_depth == 2


def test_apply_on_depleted_rank_is_a_no_op():
    shoe = make_shoe(1)
    for _ in range(4):
        assert shoe.apply(Rank.ACE)
    counts, rc, depth = shoe.snapshot(), shoe.running_count, shoe.history_depth
    assert shoe.apply(Rank.ACE) is False
    assert shoe.snapshot() == counts
    assert shoe.running_count == rc
    assert shoe.history_depth == depth


def test_remove_at_capacity_is_a_no_op():
    shoe = make_shoe(1)
    assert shoe.remove(Rank.SIX) is False
    assert shoe.remaining(Rank.SIX) == 4
    assert shoe.running_count == 0


def test_remove_corrects_without_history():
    shoe = make_shoe(1)
    shoe.apply(Rank.FIVE)
    assert shoe.remove(Rank.FIVE) is True
    assert shoe.remaining(Rank.FIVE) == 4
    assert shoe.running_count == 0
    assert shoe.history_depth == 1


def test_undo_restores_the_saved_snapshot_verbatim():
    shoe = make_shoe(6)
    shoe.apply(Rank.FIVE)
    shoe.apply(Rank.SIX)
    shoe.remove(Rank.FIVE)
    assert shoe.undo()
    # Back to the state right before the six was dealt; the correction is gone.
    assert shoe.remaining(Rank.FIVE) == 23
    assert shoe.remaining(Rank.SIX) == 24
    assert shoe.running_count == 1


def test_undo_with_empty_history():
    shoe = make_shoe(1)
    assert shoe.undo() is False
    assert shoe.total_cards == 52


def test_history_entries_hold_independent_snapshots():
    shoe = make_shoe(1)
    shoe.apply(Rank.TWO)
    entry = shoe.last_entry
    shoe.apply(Rank.TWO)
    shoe.apply(Rank.TEN)
    assert entry.rank is Rank.TWO
    assert entry.weight == 1
    assert entry.prior_running_count == 0
    assert entry.prior_remaining[Rank.TWO.index] == 4


def test_reset_clears_everything_and_can_change_decks():
    shoe = make_shoe(6)
    shoe.apply(Rank.TWO)
    shoe.apply(Rank.TEN)
    shoe.reset(2)
    assert shoe.decks == 2
    assert shoe.total_cards == 104
    assert shoe.running_count == 0
    assert shoe.history_depth == 0
    shoe.apply(Rank.ACE)
    shoe.reset()
    assert shoe.total_cards == 104


@pytest.mark.parametrize("decks", [0, -1, 1.5, True])
def test_reset_rejects_bad_deck_counts(decks):
    shoe = make_shoe(1)
    with pytest.raises(ValueError):
        shoe.reset(decks)


def test_invalid_rank_is_reported():
    shoe = make_shoe(1)
    with pytest.raises(InvalidRankError):
        shoe.apply("J")
    with pytest.raises(InvalidRankError):
        shoe.remove("1")


def test_quick_apply_walks_bucket_priority():
    shoe = make_shoe(1)
    dealt = [shoe.quick_apply(CountBucket.LOW) for _ in range(5)]
    assert dealt == [Rank.TWO] * 4 + [Rank.THREE]
    assert shoe.running_count == 5
    assert shoe.quick_apply(0) is Rank.SEVEN
    assert shoe.quick_apply(-1) is Rank.TEN
    assert shoe.running_count == 4
    assert shoe.history_depth == 7


def test_quick_apply_exhausted_bucket_is_a_no_op():
    shoe = make_shoe(1)
    for _ in range(20):
        assert shoe.quick_apply(CountBucket.HIGH) is not None
    assert shoe.remaining(Rank.TEN) == 0
    assert shoe.remaining(Rank.ACE) == 0
    counts, rc = shoe.snapshot(), shoe.running_count
    assert shoe.quick_apply(CountBucket.HIGH) is None
    assert shoe.snapshot() == counts
    assert shoe.running_count == rc
    assert shoe.total_cards == 32


def test_cards_by_count_category():
    shoe = make_shoe(6)
    breakdown = shoe.cards_by_count_category()
    assert breakdown[CountBucket.LOW] == (120, pytest.approx(38.46, abs=0.01))
    assert breakdown[CountBucket.NEUTRAL] == (72, pytest.approx(23.08, abs=0.01))
    assert breakdown[CountBucket.HIGH][0] == 120


def test_empty_shoe():
    shoe = make_shoe(1)
    for rank in Rank:
        while shoe.apply(rank):
            pass
    assert shoe.total_cards == 0
    assert shoe.running_count == 0
    assert shoe.true_count() == 0
    assert shoe.penetration() == 1.0
    assert all(pct == 0.0 for _, pct in shoe.cards_by_count_category().values())


def test_running_count_uses_bound_system():
    shoe = make_shoe(1, system="zen")
    shoe.apply(Rank.FIVE)
    shoe.apply(Rank.TEN)
    shoe.apply(Rank.SEVEN)
    assert shoe.running_count == 2 - 2 + 1


def test_random_operation_sequences_keep_invariants():
    rng = random.Random(7)
    shoe = Shoe(HI_LO, decks=1)
    ranks = list(Rank)
    for _ in range(2000):
        op = rng.choice(["apply", "apply", "remove", "undo", "quick"])
        if op == "apply":
            shoe.apply(rng.choice(ranks))
        elif op == "remove":
            shoe.remove(rng.choice(ranks))
        elif op == "undo":
            shoe.undo()
        else:
            shoe.quick_apply(rng.choice([1, 0, -1]))
        assert_within_capacity(shoe)
        assert sum(shoe.snapshot().values()) == shoe.total_cards
        dealt = {rank: shoe.capacity(rank) - shoe.remaining(rank) for rank in ranks}
        assert shoe.total_cards + sum(dealt.values()) == 52
        # The running count always matches the cards currently out of the shoe.
        assert shoe.running_count == sum(HI_LO.weight(rank) * n for rank, n in dealt.items())


def test_no_op_is_logged_at_debug(caplog):
    shoe = make_shoe(1)
    with caplog.at_level(logging.DEBUG, logger="shoe"):
        shoe.undo()
    assert "Nothing to undo" in caplog.text
