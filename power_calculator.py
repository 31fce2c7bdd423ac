"""
EDH power calculator.

Combines the feature vector and the opening-hand simulation into a 1-10
power score, a band, legality, drivers/drags and (when a target power is
given) coaching operations. Configuration is an immutable value passed into
every call; nothing here holds mutable module state.
"""
from __future__ import annotations

import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field, replace
from numbers import Real
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from card_lists import CATALOG_VERSION
from coach import recommend
from features import extract_features
from format_checker import FormatChecker
from models import (
    SUBSCORE_NAMES,
    BandThresholds,
    Card,
    EDHPowerScore,
    FeatureExtraction,
    PowerDiagnostics,
    PowerFlags,
    Subscores,
)
from simulation import DEFAULT_ITERATIONS, DEFAULT_SEED, goldfish, simulate

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised for invalid power calculator configuration."""


DEFAULT_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "speed": 0.20,
    "interaction": 0.15,
    "tutors": 0.12,
    "resilience": 0.12,
    "card_advantage": 0.10,
    "mana": 0.12,
    "consistency": 0.12,
    "stax_pressure": 0.04,
    "synergy": 0.03,
})


@dataclass(frozen=True)
class LogisticParams:
    """Center and spread of the raw-score to power squash."""
    mu: float = 55.0
    sigma: float = 12.0


@dataclass(frozen=True)
class PowerCalculatorConfig:
    """
    Weights, band thresholds and logistic parameters.

    Weight maps may be partial; the weighted average is normalized by the
    total of the weights supplied.
    """
    weights: Mapping[str, float] = field(default_factory=lambda: DEFAULT_WEIGHTS)
    thresholds: BandThresholds = BandThresholds()
    logistic: LogisticParams = LogisticParams()

    def __post_init__(self):
        weights = dict(self.weights)
        unknown = set(weights) - set(SUBSCORE_NAMES)
        if unknown:
            raise ConfigError(f"Unknown weight keys: {', '.join(sorted(unknown))}")
        for key, value in weights.items():
            if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                raise ConfigError(f"Weight {key!r} must be a finite number, got {value!r}")
            if value < 0:
                raise ConfigError(f"Weight {key!r} must be non-negative, got {value}")
        if sum(weights.values()) <= 0:
            raise ConfigError("Weights must sum to a positive total")

        for label, value in (
            ("Logistic mu", self.logistic.mu),
            ("Logistic sigma", self.logistic.sigma),
            ("Threshold casual_max", self.thresholds.casual_max),
            ("Threshold mid_max", self.thresholds.mid_max),
            ("Threshold high_max", self.thresholds.high_max),
        ):
            if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                raise ConfigError(f"{label} must be a finite number, got {value!r}")

        if self.logistic.sigma <= 0:
            raise ConfigError(f"Logistic sigma must be positive, got {self.logistic.sigma}")

        t = self.thresholds
        if not t.casual_max <= t.mid_max <= t.high_max:
            raise ConfigError(
                f"Band thresholds must be ordered casual <= mid <= high, got "
                f"{t.casual_max}, {t.mid_max}, {t.high_max}"
            )
        object.__setattr__(self, "weights", MappingProxyType(weights))

    def with_overrides(
        self,
        weights: Optional[Mapping[str, float]] = None,
        thresholds: Optional[Mapping[str, float]] = None,
        logistic: Optional[Mapping[str, float]] = None,
    ) -> "PowerCalculatorConfig":
        """Return a new config with the given fields merged over this one."""
        merged_weights = dict(self.weights)
        merged_weights.update(weights or {})
        try:
            new_thresholds = replace(self.thresholds, **(thresholds or {}))
            new_logistic = replace(self.logistic, **(logistic or {}))
        except TypeError as e:
            raise ConfigError(f"Invalid config override: {e}") from None
        return PowerCalculatorConfig(weights=merged_weights, thresholds=new_thresholds, logistic=new_logistic)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: Optional["PowerCalculatorConfig"] = None) -> "PowerCalculatorConfig":
        """Build a config from plain data, merging over base (DEFAULT_CONFIG by default)."""
        unknown = set(data) - {"weights", "thresholds", "logistic"}
        if unknown:
            raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown))}")
        return (base or DEFAULT_CONFIG).with_overrides(
            weights=data.get("weights"),
            thresholds=data.get("thresholds"),
            logistic=data.get("logistic"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weights": dict(self.weights),
            "thresholds": asdict(self.thresholds),
            "logistic": asdict(self.logistic),
        }


DEFAULT_CONFIG = PowerCalculatorConfig()


def load_config(path: Union[str, Path]) -> PowerCalculatorConfig:
    """
    Load a calculator config from a JSON file.

    Missing sections and keys fall back to DEFAULT_CONFIG.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the JSON is invalid or holds invalid values
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Config file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}")
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")
    logger.info("Loaded power calculator config from %s", path)
    return PowerCalculatorConfig.from_dict(data)


# ===== SCORING STEPS =====

def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def subscores_from_features(features: FeatureExtraction) -> Subscores:
    """Each subscore is its same-named feature."""
    return Subscores(
        speed=features.speed_proxy,
        interaction=features.interaction_density,
        tutors=features.tutor_density,
        resilience=features.resilience_index,
        card_advantage=features.card_advantage_engines,
        mana=features.mana_quality,
        consistency=features.consistency_metrics,
        stax_pressure=features.stax_pressure,
        synergy=features.synergy_score,
    )


def weighted_score(subscores: Subscores, weights: Mapping[str, float]) -> float:
    """Weighted average normalized by the total supplied weight."""
    values = subscores.as_dict()
    total_weight = sum(weights.values())
    return sum(values[key] * weight for key, weight in weights.items()) / total_weight


def logistic_power(raw: float, params: LogisticParams) -> float:
    """Map a 0-100 raw score onto 1-10."""
    z = (raw - params.mu) / params.sigma
    if z >= 0:
        sigmoid = 1 / (1 + math.exp(-z))
    else:
        sigmoid = math.exp(z) / (1 + math.exp(z))
    return 1 + 9 * sigmoid


def band_for(power: float, thresholds: BandThresholds) -> str:
    if power <= thresholds.casual_max:
        return "casual"
    if power <= thresholds.mid_max:
        return "mid"
    if power <= thresholds.high_max:
        return "high"
    return "cedh"


def score_subscores(subscores: Subscores, config: PowerCalculatorConfig = DEFAULT_CONFIG) -> Tuple[float, str]:
    """Power (one decimal) and band for a precomputed subscore vector."""
    raw = weighted_score(subscores, config.weights)
    power = round_half_up(logistic_power(raw, config.logistic), 1)
    return power, band_for(power, config.thresholds)


# ===== DRIVERS & DRAGS =====

DRIVER_TEMPLATES = {
    "speed": "Explosive speed ({score}/100) from fast mana and low curve",
    "interaction": "Strong interaction suite ({score}/100) with efficient answers",
    "tutors": "High tutor density ({score}/100) for consistency",
    "resilience": "Excellent resilience ({score}/100) with protection",
    "card_advantage": "Strong card advantage ({score}/100) engines",
    "mana": "Optimized manabase ({score}/100) with fixing",
    "consistency": "High consistency ({score}/100) with smooth curve",
    "stax_pressure": "Significant stax pressure ({score}/100)",
    "synergy": "Excellent synergy ({score}/100) between cards",
}

DRAG_TEMPLATES = {
    "speed": "Slow development ({score}/100) - needs acceleration",
    "interaction": "Limited interaction ({score}/100) - vulnerable to threats",
    "tutors": "Low tutor count ({score}/100) - inconsistent execution",
    "resilience": "Poor resilience ({score}/100) - fragile game plan",
    "card_advantage": "Limited card draw ({score}/100) - runs out of gas",
    "mana": "Mana issues ({score}/100) - fixing or curve problems",
    "consistency": "Inconsistent draws ({score}/100) - curve or redundancy issues",
    "stax_pressure": "No resource denial ({score}/100)",
    "synergy": "Poor synergy ({score}/100) - cards don't work together",
}

MAX_DRIVERS = 3


def identify_drivers(subscores: Subscores, power: float) -> List[str]:
    """Subscores at or above a power-dependent bar, in subscore order."""
    threshold = 70 if power >= 7 else 60 if power >= 4 else 50
    drivers = [
        DRIVER_TEMPLATES[name].format(score=int(round_half_up(score)))
        for name, score in subscores.as_dict().items() if score >= threshold
    ]
    return drivers[:MAX_DRIVERS]


def identify_drags(subscores: Subscores, power: float) -> List[str]:
    threshold = 50 if power >= 7 else 40 if power >= 4 else 30
    drags = [
        DRAG_TEMPLATES[name].format(score=int(round_half_up(score)))
        for name, score in subscores.as_dict().items() if score <= threshold
    ]
    return drags[:MAX_DRIVERS]


# ===== FLAGS & DIAGNOSTICS =====

def detect_flags(features: FeatureExtraction, band: str) -> PowerFlags:
    """Tutor and game-changer shortfalls for the band. Informational only."""
    tutor_threshold = 6.0 if band == "cedh" else 3.0 if band == "high" else 1.5
    gc_threshold = 2 if band in ("high", "cedh") else 1
    return PowerFlags(
        no_tutors=features.tutor_quality < tutor_threshold,
        no_game_changers=features.game_changer_count < gc_threshold,
    )


def build_diagnostics(features: FeatureExtraction) -> PowerDiagnostics:
    return PowerDiagnostics(
        tutor_count=len(features.tutors),
        tutor_quality=features.tutor_quality,
        tutors=features.tutors,
        game_changer_count=features.game_changer_count,
        game_changer_classes=features.game_changer_class_counts(),
        game_changers=features.game_changers,
    )


# ===== MAIN ENTRY POINT =====

def calculate(
    cards: Sequence[Card],
    format: str = "commander",
    seed: int = DEFAULT_SEED,
    commander: Optional[Card] = None,
    target_power: Optional[float] = None,
    config: PowerCalculatorConfig = DEFAULT_CONFIG,
    iterations: int = DEFAULT_ITERATIONS,
) -> EDHPowerScore:
    """
    Full power pipeline for one deck.

    Feature extraction and the hand simulation do not depend on each other
    and run on separate threads before being combined.

    Args:
        cards: Deck cards, commander excluded
        format: Format name for legality checks
        seed: Simulation seed
        commander: Optional commander card
        target_power: Desired power; enables coaching when given
        config: Weights, thresholds and logistic parameters
        iterations: Number of simulated opening hands

    Returns:
        EDHPowerScore
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        features_future = executor.submit(extract_features, cards, commander)
        playability_future = executor.submit(simulate, cards, seed, iterations)
        features = features_future.result()
        playability = playability_future.result()

    subscores = subscores_from_features(features)
    power, band = score_subscores(subscores, config)
    legality = FormatChecker().check(cards, format, commander).to_result()

    recommendations: List[str] = []
    operations = []
    if target_power is not None:
        pool = ([commander] if commander else []) + list(cards)
        recommendations, operations = recommend(subscores, target_power, power, pool)

    logger.info("Power %.1f (%s), legal=%s", power, band, legality.ok)
    return EDHPowerScore(
        power=power,
        band=band,
        subscores=subscores,
        playability=playability,
        goldfish=goldfish(features),
        legality=legality,
        drivers=tuple(identify_drivers(subscores, power)),
        drags=tuple(identify_drags(subscores, power)),
        recommendations=tuple(recommendations),
        coaching_operations=tuple(operations),
        thresholds=config.thresholds,
        flags=detect_flags(features, band),
        diagnostics=build_diagnostics(features),
        catalog_version=CATALOG_VERSION,
    )


def calibrate_for_deck(
    known_decks: Sequence[Tuple[Sequence[Card], Optional[Card], float]],
    config: PowerCalculatorConfig = DEFAULT_CONFIG,
) -> PowerCalculatorConfig:
    """Fit weights to decks with known power ratings. Not implemented."""
    raise NotImplementedError("Weight calibration against rated decks is not implemented")
