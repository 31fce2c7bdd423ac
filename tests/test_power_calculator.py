import json

import pytest

from models import BandThresholds, Subscores
from power_calculator import (
    DEFAULT_CONFIG,
    ConfigError,
    PowerCalculatorConfig,
    band_for,
    calculate,
    calibrate_for_deck,
    load_config,
    round_half_up,
    score_subscores,
)


def _uniform(value):
    return Subscores(**{name: value for name in Subscores.__dataclass_fields__})


class TestBands:
    @pytest.mark.parametrize("power, band", [
        (1.0, "casual"), (3.4, "casual"), (3.5, "mid"), (6.6, "mid"),
        (6.7, "high"), (8.5, "high"), (8.6, "cedh"), (10.0, "cedh"),
    ])
    def test_default_thresholds_are_inclusive(self, power, band):
        assert band_for(power, BandThresholds()) == band

    def test_custom_thresholds(self):
        assert band_for(5.0, BandThresholds(casual_max=5.0, mid_max=6.0, high_max=7.0)) == "casual"


class TestScoring:
    def test_power_range(self):
        low, _ = score_subscores(_uniform(0))
        high, band = score_subscores(_uniform(100))
        assert 1 <= low < high <= 10
        assert low == 1.1
        assert band == "cedh"

    def test_midpoint_maps_to_center(self):
        power, band = score_subscores(_uniform(55))
        assert power == pytest.approx(5.5)
        assert band == "mid"

    def test_power_has_one_decimal(self):
        power, _ = score_subscores(_uniform(37))
        assert power == round(power, 1)

    def test_round_half_up(self):
        assert round_half_up(2.45, 1) == pytest.approx(2.5)
        assert round_half_up(0.5) == 1

    def test_steep_logistic_stays_in_range(self):
        steep = DEFAULT_CONFIG.with_overrides(logistic={"sigma": 0.05})
        assert score_subscores(_uniform(0), steep) == (1.0, "casual")
        assert score_subscores(_uniform(100), steep) == (10.0, "cedh")
        off_center = DEFAULT_CONFIG.with_overrides(logistic={"mu": 1e6, "sigma": 1})
        assert score_subscores(_uniform(100), off_center) == (1.0, "casual")


class TestCalculate:
    def test_vanilla_deck_scenario(self, vanilla_cards):
        score = calculate(vanilla_cards, seed=42, iterations=200)
        assert score.power == pytest.approx(2.6)
        assert score.band == "casual"
        assert score.subscores.speed == pytest.approx(90)
        assert score.subscores.mana == pytest.approx(92)
        assert score.legality.ok is False
        assert "Commander format requires a commander" in score.legality.issues
        assert score.recommendations == ()
        assert score.coaching_operations == ()

    def test_drivers_and_drags(self, vanilla_cards):
        score = calculate(vanilla_cards, iterations=100)
        assert score.drivers == (
            "Explosive speed (90/100) from fast mana and low curve",
            "Optimized manabase (92/100) with fixing",
            "High consistency (50/100) with smooth curve",
        )
        assert score.drags == (
            "Limited interaction (0/100) - vulnerable to threats",
            "Low tutor count (0/100) - inconsistent execution",
            "Poor resilience (0/100) - fragile game plan",
        )

    def test_legal_deck(self, legal_deck):
        score = calculate(legal_deck.cards, commander=legal_deck.commander, iterations=100)
        assert score.legality.ok
        assert score.legality.issues == ()

    def test_same_seed_same_result(self, vanilla_cards, combo_cards):
        cards = vanilla_cards + combo_cards
        first = calculate(cards, seed=5, iterations=300, target_power=8)
        second = calculate(cards, seed=5, iterations=300, target_power=8)
        assert first.to_dict() == second.to_dict()

    def test_flags_do_not_change_power(self, forest):
        score = calculate([forest(100)], iterations=50)
        assert score.flags.no_tutors is True
        assert score.flags.no_game_changers is True
        assert score.power == score_subscores(score.subscores)[0]

    def test_diagnostics_list_tutors(self, vanilla_cards, make_card):
        tutor = make_card("Demonic Tutor", 2, "Sorcery", "Search your library for a card.")
        score = calculate(vanilla_cards + [tutor], iterations=50)
        assert score.diagnostics.tutor_count == 1
        assert score.diagnostics.tutor_quality == 2.0

    def test_target_enables_coaching(self, vanilla_cards):
        score = calculate(vanilla_cards, iterations=50, target_power=8)
        assert score.coaching_operations
        priorities = [op.priority for op in score.coaching_operations]
        assert priorities == sorted(priorities, reverse=True)

    def test_weights_change_power(self, vanilla_cards):
        speedy = DEFAULT_CONFIG.with_overrides(weights={"speed": 1.0})
        base = calculate(vanilla_cards, iterations=50)
        boosted = calculate(vanilla_cards, iterations=50, config=speedy)
        assert boosted.power > base.power

    def test_to_dict_is_json_serializable(self, vanilla_cards):
        score = calculate(vanilla_cards, iterations=50, target_power=9)
        data = json.loads(json.dumps(score.to_dict()))
        assert data["band"] == "casual"
        assert set(data["subscores"]) == set(Subscores.__dataclass_fields__)


class TestConfig:
    def test_negative_weight_rejected(self):
        with pytest.raises(ConfigError):
            PowerCalculatorConfig(weights={"speed": -1})

    def test_unknown_weight_rejected(self):
        with pytest.raises(ConfigError):
            DEFAULT_CONFIG.with_overrides(weights={"vibes": 1})

    def test_zero_total_weight_rejected(self):
        with pytest.raises(ConfigError):
            PowerCalculatorConfig(weights={"speed": 0})

    def test_unordered_thresholds_rejected(self):
        with pytest.raises(ConfigError):
            DEFAULT_CONFIG.with_overrides(thresholds={"casual_max": 7.0})

    def test_non_positive_sigma_rejected(self):
        with pytest.raises(ConfigError):
            DEFAULT_CONFIG.with_overrides(logistic={"sigma": 0})

    @pytest.mark.parametrize("section, values", [
        ("logistic", {"sigma": "12"}),
        ("logistic", {"mu": None}),
        ("logistic", {"mu": float("nan")}),
        ("thresholds", {"high_max": "8.5"}),
        ("thresholds", {"casual_max": True}),
    ])
    def test_non_numeric_parameters_rejected(self, section, values):
        with pytest.raises(ConfigError):
            PowerCalculatorConfig.from_dict({section: values})

    def test_load_config_string_threshold(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"thresholds": {"mid_max": "6.6"}}))
        with pytest.raises(ConfigError):
            load_config(path)

    def test_unknown_override_key_rejected(self):
        with pytest.raises(ConfigError):
            DEFAULT_CONFIG.with_overrides(logistic={"tau": 1})

    def test_overrides_leave_original_untouched(self):
        changed = DEFAULT_CONFIG.with_overrides(weights={"speed": 0.5})
        assert changed.weights["speed"] == 0.5
        assert DEFAULT_CONFIG.weights["speed"] == 0.20

    def test_weights_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_CONFIG.weights["speed"] = 1.0

    def test_from_dict_rejects_unknown_sections(self):
        with pytest.raises(ConfigError):
            PowerCalculatorConfig.from_dict({"colors": {}})

    def test_round_trip_through_dict(self):
        assert PowerCalculatorConfig.from_dict(DEFAULT_CONFIG.to_dict()) == DEFAULT_CONFIG

    def test_load_config(self, tmp_path):
        path = tmp_path / "power.json"
        path.write_text(json.dumps({"thresholds": {"high_max": 9.0}, "logistic": {"mu": 50}}))
        config = load_config(path)
        assert config.thresholds.high_max == 9.0
        assert config.thresholds.casual_max == 3.4
        assert config.logistic.mu == 50
        assert config.weights == DEFAULT_CONFIG.weights

    def test_load_config_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_load_config_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.json")


def test_calibration_is_not_implemented(vanilla_cards):
    with pytest.raises(NotImplementedError):
        calibrate_for_deck([(vanilla_cards, None, 3.0)])
