"""
Opening-hand simulation and goldfish estimates.

Every trial draws from its own generator seeded by trial_seed(seed, index),
so splitting the trials across workers reproduces the serial result exactly.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import FrozenSet, List, Sequence, Tuple

from models import Card, FeatureExtraction, GoldfishMetrics, PlayabilityMetrics, expand_cards
from utils import land_colors

logger = logging.getLogger(__name__)

DEFAULT_SEED = 42
DEFAULT_ITERATIONS = 10000
HAND_SIZE = 7

_MASK31 = 0x7FFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


class SeededRandom:
    """
    Linear congruential generator with 31-bit state.

    state = (state * 1103515245 + 12345) & 0x7fffffff; each draw returns
    state / 0x7fffffff.
    """

    MULTIPLIER = 1103515245
    INCREMENT = 12345

    def __init__(self, seed: int):
        self.state = int(seed) & _MASK31

    def random(self) -> float:
        self.state = (self.state * self.MULTIPLIER + self.INCREMENT) & _MASK31
        return self.state / _MASK31

    def randbelow(self, n: int) -> int:
        """Index in [0, n). A draw of exactly 1.0 maps to n - 1."""
        return min(int(self.random() * n), n - 1)


def trial_seed(seed: int, index: int) -> int:
    """Derive the generator seed of one trial with a splitmix64 step."""
    z = (int(seed) + (index + 1) * 0x9E3779B97F4A7C15) & _MASK64
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK64
    z ^= z >> 31
    return z & _MASK31


def is_rock_or_dork(card: Card) -> bool:
    """Artifacts and creatures whose text adds mana."""
    text = card.text
    return (card.is_artifact or card.is_creature) and "add" in text and "mana" in text


@dataclass(frozen=True)
class _HandCard:
    """Per-copy attributes precomputed once before the trials."""
    is_land: bool
    untapped_land: bool
    rock: bool
    cheap_spell: bool
    colors: FrozenSet[str]


def _profile(card: Card) -> _HandCard:
    is_land = card.is_land
    return _HandCard(
        is_land=is_land,
        untapped_land=is_land and not card.enters_tapped,
        rock=is_rock_or_dork(card),
        cheap_spell=not is_land and card.mana_value <= 3,
        colors=land_colors(card.type_line, card.oracle_text) if is_land else frozenset(),
    )


def classify_hand(hand: Sequence[_HandCard]) -> Tuple[bool, bool, bool]:
    """Return (keepable, turn-1 land hit, turn-2 two-color hit) for one hand."""
    lands = sum(1 for c in hand if c.is_land)
    rocks = sum(1 for c in hand if c.rock)
    cheap_spells = sum(1 for c in hand if c.cheap_spell)
    color_access = lands > 0 or rocks > 0

    keepable = (lands >= 2 or (lands >= 1 and rocks > 0)) and color_access and cheap_spells >= 2
    t1_hit = any(c.untapped_land for c in hand)

    colors = set()
    for c in hand:
        colors |= c.colors
    t2_hit = len(colors) >= 2
    return keepable, t1_hit, t2_hit


def _run_trials(profiles: List[_HandCard], seed: int, start: int, stop: int) -> Tuple[int, int, int]:
    keepable = t1 = t2 = 0
    n = len(profiles)
    for index in range(start, stop):
        rng = SeededRandom(trial_seed(seed, index))
        shuffled = list(profiles)
        # Fisher-Yates
        for i in range(n - 1, 0, -1):
            j = rng.randbelow(i + 1)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        k, h1, h2 = classify_hand(shuffled[:HAND_SIZE])
        keepable += k
        t1 += h1
        t2 += h2
    return keepable, t1, t2


def _chunks(iterations: int, workers: int) -> List[Tuple[int, int]]:
    size = math.ceil(iterations / workers)
    return [(start, min(start + size, iterations)) for start in range(0, iterations, size)]


def simulate(
    cards: Sequence[Card],
    seed: int = DEFAULT_SEED,
    iterations: int = DEFAULT_ITERATIONS,
    workers: int = 1,
) -> PlayabilityMetrics:
    """
    Estimate opening-hand quality with a seeded Monte Carlo run.

    Args:
        cards: Deck cards; quantities are expanded to physical copies
        seed: Integer seed, identical seeds give identical metrics
        iterations: Number of seven-card hands to draw
        workers: Split the trials over this many threads

    Returns:
        PlayabilityMetrics with percentages in [0, 100]

    Raises:
        ValueError: If iterations or workers is below 1
    """
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1, got {iterations}")
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}")

    deck = expand_cards(cards)
    lands = [card for card in deck if card.is_land]
    nonlands = [card for card in deck if not card.is_land]

    untapped = sum(1 for land in lands if not land.enters_tapped)
    untapped_ratio = untapped / max(len(lands), 1) * 100
    avg_cmc = sum(card.mana_value for card in nonlands) / len(nonlands) if nonlands else 0.0
    rocks = sum(1 for card in deck if is_rock_or_dork(card))

    if not deck:
        logger.warning("Simulating an empty deck; all hand metrics are zero")
        totals = (0, 0, 0)
    else:
        profiles = [_profile(card) for card in deck]
        if workers == 1:
            totals = _run_trials(profiles, seed, 0, iterations)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(_run_trials, profiles, seed, start, stop)
                           for start, stop in _chunks(iterations, workers)]
                parts = [future.result() for future in futures]
            totals = tuple(sum(part[i] for part in parts) for i in range(3))

    keepable, t1, t2 = totals
    metrics = PlayabilityMetrics(
        keepable7_pct=keepable / iterations * 100,
        t1_color_hit_pct=t1 / iterations * 100,
        t2_two_colors_hit_pct=t2 / iterations * 100,
        untapped_land_ratio=untapped_ratio,
        avg_cmc=avg_cmc,
        rocks_dorks_count=rocks,
        iterations=iterations,
        seed=seed,
    )
    logger.debug("Simulated %d hands (seed=%d): %s", iterations, seed, metrics)
    return metrics


def goldfish(features: FeatureExtraction) -> GoldfishMetrics:
    """Expected win turn from the feature vector; no re-simulation."""
    reduction = (features.fast_mana_index * 0.06
                 + features.tutor_density * 0.05
                 + features.wincon_compactness * 0.1
                 + features.speed_proxy * 0.03)
    return GoldfishMetrics(
        exp_win_turn=max(3.0, 10 - reduction),
        combo_presence=features.wincon_compactness > 20,
        compact_combo_count=int(features.wincon_compactness // 25),
    )
