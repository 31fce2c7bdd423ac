"""
Deck analyzer: runs the power pipeline and the synergy engine on one deck.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from coach import get_quick_fixes
from models import Deck, EDHPowerScore
from power_calculator import DEFAULT_CONFIG, PowerCalculatorConfig, calculate
from simulation import DEFAULT_ITERATIONS, DEFAULT_SEED
from synergy import SynergyAnalysis, analyze_synergy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeckReport:
    """Power score, synergy analysis and quick fixes for one deck."""
    deck_name: Optional[str]
    power: EDHPowerScore
    synergy: SynergyAnalysis
    quick_fixes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deck_name": self.deck_name,
            "power": self.power.to_dict(),
            "synergy": self.synergy.to_dict(),
            "quick_fixes": list(self.quick_fixes),
        }


class DeckAnalyzer:
    """Analyzes decks with a fixed configuration and simulation seed."""

    def __init__(
        self,
        config: PowerCalculatorConfig = DEFAULT_CONFIG,
        seed: int = DEFAULT_SEED,
        iterations: int = DEFAULT_ITERATIONS,
    ):
        self.config = config
        self.seed = seed
        self.iterations = iterations

    def analyze(self, deck: Deck, target_power: Optional[float] = None) -> DeckReport:
        """
        Score and analyze a deck.

        Args:
            deck: The deck to analyze
            target_power: Overrides deck.target_power for coaching

        Returns:
            DeckReport
        """
        target = target_power if target_power is not None else deck.target_power
        logger.info("Analyzing %s (%d cards)", deck.name or "deck", deck.total_cards)

        with ThreadPoolExecutor(max_workers=2) as executor:
            power_future = executor.submit(
                calculate, deck.cards, deck.format, self.seed, deck.commander,
                target, self.config, self.iterations,
            )
            synergy_future = executor.submit(analyze_synergy, deck.cards, deck.format, deck.commander)
            power = power_future.result()
            synergy = synergy_future.result()

        quick_fixes = get_quick_fixes(target - power.power, target) if target is not None else []
        return DeckReport(
            deck_name=deck.name,
            power=power,
            synergy=synergy,
            quick_fixes=tuple(quick_fixes),
        )
