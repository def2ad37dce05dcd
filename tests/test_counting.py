import pytest

import counting
from cards import Rank
from counting import (
    HI_LO,
    CountingSystem,
    UnknownCountingSystemError,
    available_systems,
    decks_remaining,
    get_counting_system,
    register_counting_system,
    round_true_count,
    true_count,
)


def test_hi_lo_weights():
    system = get_counting_system("hi-lo")
    for rank in (Rank.TWO, Rank.THREE, Rank.FOUR, Rank.FIVE, Rank.SIX):
        assert system.weight(rank) == 1
    for rank in (Rank.SEVEN, Rank.EIGHT, Rank.NINE):
        assert system.weight(rank) == 0
    assert system.weight(Rank.TEN) == -1
    assert system.weight(Rank.ACE) == -1
    assert system.is_balanced


def test_builtin_systems_balance():
    assert get_counting_system("zen").is_balanced
    assert get_counting_system("omega-ii").is_balanced
    ko = get_counting_system("ko")
    assert not ko.is_balanced
    assert ko.full_deck_sum == 4


def test_unknown_system_raises():
    with pytest.raises(UnknownCountingSystemError):
        get_counting_system("wong-quarters")
    # Callers catching KeyError keep working.
    with pytest.raises(KeyError):
        get_counting_system("")


def test_tags_are_immutable():
    with pytest.raises(TypeError):
        HI_LO.tags[Rank.TWO] = 5


def test_register_new_system(monkeypatch):
    monkeypatch.setattr(counting, "_REGISTRY", dict(counting._REGISTRY))
    tags = {rank: 0 for rank in Rank}
    tags[Rank.FIVE] = 1
    tags[Rank.ACE] = -1
    system = CountingSystem(id="ace-five-test", name="Ace-Five", tags=tags)
    register_counting_system(system)
    assert get_counting_system("ace-five-test") is system
    assert "ace-five-test" in available_systems()
    with pytest.raises(ValueError):
        register_counting_system(system)
    register_counting_system(system, replace=True)


def test_registry_holds_only_builtins():
    assert available_systems() == ["hi-lo", "ko", "omega-ii", "zen"]


def test_system_requires_every_rank_and_integer_tags():
    with pytest.raises(ValueError):
        CountingSystem(id="partial", name="Partial", tags={Rank.TWO: 1})
    tags = {rank: 0 for rank in Rank}
    tags[Rank.FIVE] = 0.5
    with pytest.raises(ValueError):
        CountingSystem(id="halves", name="Halves", tags=tags)


def test_decks_remaining_is_fractional():
    assert decks_remaining(312) == 6.0
    assert decks_remaining(311) == pytest.approx(5.98, abs=0.005)


def test_true_count_zero_cases():
    assert true_count(0, 4.5) == 0
    assert true_count(7, 0) == 0
    assert true_count(-3, 0.0) == 0


def test_true_count_divides_by_decks():
    assert true_count(6, 3.0) == 2.0
    assert true_count(1, 311 / 52) == pytest.approx(0.1672, abs=1e-4)


@pytest.mark.parametrize(
    "value, expected",
    [(0.0, 0), (0.49, 0), (0.5, 1), (-0.5, 0), (2.5, 3), (-2.5, -2), (-1.5, -1), (1.2, 1), (-1.6, -2), (3.49, 3)],
)
def test_round_true_count_halves_round_up(value, expected):
    assert round_true_count(value) == expected
