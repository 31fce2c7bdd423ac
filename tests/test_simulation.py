import pytest

from models import FeatureExtraction
from simulation import DEFAULT_ITERATIONS, SeededRandom, classify_hand, goldfish, simulate, trial_seed, _profile


def test_generator_is_reproducible():
    a, b = SeededRandom(42), SeededRandom(42)
    assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]


def test_generator_follows_lcg_recurrence():
    rng = SeededRandom(1)
    expected_state = (1 * 1103515245 + 12345) & 0x7FFFFFFF
    assert rng.random() == expected_state / 0x7FFFFFFF


def test_randbelow_stays_in_range():
    rng = SeededRandom(123)
    assert all(0 <= rng.randbelow(7) < 7 for _ in range(1000))


def test_trial_seeds_differ():
    assert len({trial_seed(42, i) for i in range(100)}) == 100


def test_same_seed_same_metrics(vanilla_cards):
    first = simulate(vanilla_cards, seed=7, iterations=500)
    second = simulate(vanilla_cards, seed=7, iterations=500)
    assert first == second


def test_parallel_run_matches_serial(vanilla_cards):
    serial = simulate(vanilla_cards, seed=11, iterations=1000)
    parallel = simulate(vanilla_cards, seed=11, iterations=1000, workers=4)
    assert serial == parallel


def test_rock_deck_hands_are_keepable(rock_cards):
    runs = [simulate(rock_cards, seed=seed, workers=4) for seed in (1, 42, 777, 2024)]
    for metrics in runs:
        assert metrics.iterations == DEFAULT_ITERATIONS
        assert metrics.keepable7_pct > 90
        assert metrics.t1_color_hit_pct > 90
        assert metrics.untapped_land_ratio == 100
        assert metrics.avg_cmc == pytest.approx(2.0)
        assert metrics.rocks_dorks_count == 60
    for field_name in ("keepable7_pct", "t1_color_hit_pct"):
        values = [getattr(metrics, field_name) for metrics in runs]
        assert max(values) - min(values) <= 3, field_name


def test_percentages_in_bounds(vanilla_cards):
    metrics = simulate(vanilla_cards, seed=3, iterations=300)
    for value in (metrics.keepable7_pct, metrics.t1_color_hit_pct, metrics.t2_two_colors_hit_pct):
        assert 0 <= value <= 100
    assert metrics.iterations == 300
    assert metrics.seed == 3


def test_empty_deck_yields_zeros():
    metrics = simulate([], iterations=10)
    assert metrics.keepable7_pct == 0
    assert metrics.t1_color_hit_pct == 0
    assert metrics.avg_cmc == 0
    assert metrics.rocks_dorks_count == 0


@pytest.mark.parametrize("kwargs", [{"iterations": 0}, {"workers": 0}])
def test_invalid_run_parameters(vanilla_cards, kwargs):
    with pytest.raises(ValueError):
        simulate(vanilla_cards, **kwargs)


def test_classify_hand(make_card, forest):
    land = _profile(forest())
    spell = _profile(make_card("Bear", 2, "Creature — Bear"))
    assert classify_hand([land, land] + [spell] * 5) == (True, True, False)
    assert classify_hand([land] + [spell] * 6) == (False, True, False)
    assert classify_hand([spell] * 7) == (False, False, False)


def test_two_color_hit(make_card):
    forest = _profile(make_card("Forest", 0, "Basic Land — Forest"))
    island = _profile(make_card("Island", 0, "Basic Land — Island"))
    assert classify_hand([forest, island])[2] is True


def test_goldfish_baseline():
    result = goldfish(FeatureExtraction())
    assert result.exp_win_turn == 10
    assert result.combo_presence is False
    assert result.compact_combo_count == 0


def test_goldfish_floor_and_combos():
    result = goldfish(FeatureExtraction(fast_mana_index=100, tutor_density=100,
                                        wincon_compactness=60, speed_proxy=100))
    assert result.exp_win_turn == 3
    assert result.combo_presence is True
    assert result.compact_combo_count == 2
