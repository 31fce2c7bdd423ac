"""
Format Legality Checker for EDH Decks

Construction problems are reported as issues, never raised, so a deck can be
scored and flagged illegal in the same analysis.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

from models import Card, LegalityResult
from utils import canonicalize_name, is_basic_land_name

logger = logging.getLogger(__name__)


# Built-in construction rules; a JSON file of the same shape can replace them.
FORMAT_RULES: Dict[str, Dict[str, Any]] = {
    "commander": {
        "description": "100-card singleton with a commander defining color identity",
        "deck_construction": {
            "deck_size_with_commander": 99,
            "deck_size_without_commander": 100,
            "singleton": True,
        },
        "special_rules": {
            "commander_required": True,
            "color_identity": True,
        },
    },
}

FORMAT_ALIASES = {"edh": "commander"}


class LegalityIssue(NamedTuple):
    """Represents a legality issue found in a deck."""
    category: str  # 'commander', 'construction', 'singleton', 'color_identity', 'system'
    message: str
    card_name: Optional[str] = None


@dataclass
class LegalityReport:
    """Report of deck legality checking."""
    format_name: str
    issues: List[LegalityIssue]

    @property
    def legal(self) -> bool:
        return not self.issues

    def to_result(self) -> LegalityResult:
        return LegalityResult(ok=self.legal, issues=tuple(issue.message for issue in self.issues))

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        if self.legal:
            return f"✅ Legal in {self.format_name}"
        return f"❌ Illegal in {self.format_name} ({len(self.issues)} issues)"


class FormatChecker:
    """Checks deck construction against format rules."""

    def __init__(self, rules_file: Union[str, Path, None] = None):
        """
        Initialize the format checker.

        Args:
            rules_file: Optional path to a JSON file of format rules; the
                built-in commander rules are used when omitted
        """
        if rules_file is None:
            self.format_rules = FORMAT_RULES
        else:
            self.format_rules = self._load_format_rules(rules_file)

    def _load_format_rules(self, rules_file: Union[str, Path]) -> Dict[str, Any]:
        """Load format rules from JSON file."""
        try:
            with open(rules_file, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Format rules file not found: {rules_file}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in format rules file: {e}")

    def resolve_format(self, format_name: str) -> str:
        """Normalize case and aliases ("EDH" -> "commander")."""
        key = (format_name or "").strip().lower()
        return FORMAT_ALIASES.get(key, key)

    def check(
        self,
        cards: Sequence[Card],
        format_name: str = "commander",
        commander: Optional[Card] = None,
    ) -> LegalityReport:
        """
        Check if a deck is legal in the specified format.

        Args:
            cards: Deck cards, commander excluded
            format_name: Name of the format to check against
            commander: Optional commander card

        Returns:
            LegalityReport with one issue per violation
        """
        key = self.resolve_format(format_name)
        if key not in self.format_rules:
            logger.warning("Unknown format %r; available: %s", format_name, ", ".join(self.format_rules))
            return LegalityReport(
                format_name=format_name,
                issues=[LegalityIssue(category='system', message=f"Unknown format: {format_name}")],
            )

        rules = self.format_rules[key]
        issues: List[LegalityIssue] = []
        issues.extend(self._check_commander_rules(commander, rules))
        issues.extend(self._check_deck_size(cards, commander, rules))
        issues.extend(self._check_singleton(cards, rules))
        issues.extend(self._check_color_identity(cards, commander, rules))

        return LegalityReport(format_name=key, issues=issues)

    def _check_commander_rules(self, commander: Optional[Card], rules: Dict[str, Any]) -> List[LegalityIssue]:
        special_rules = rules.get('special_rules', {})
        if special_rules.get('commander_required', False) and commander is None:
            return [LegalityIssue(category='commander', message="Commander format requires a commander")]
        return []

    def _check_deck_size(
        self, cards: Sequence[Card], commander: Optional[Card], rules: Dict[str, Any]
    ) -> List[LegalityIssue]:
        construction = rules.get('deck_construction', {})
        if commander is not None:
            expected = construction.get('deck_size_with_commander')
        else:
            expected = construction.get('deck_size_without_commander')
        if expected is None:
            return []

        total_cards = sum(card.quantity for card in cards)
        if total_cards != expected:
            return [LegalityIssue(
                category='construction',
                message=f"Deck has {total_cards} cards, expected {expected}",
            )]
        return []

    def _check_singleton(self, cards: Sequence[Card], rules: Dict[str, Any]) -> List[LegalityIssue]:
        """Every non-basic name may appear once, counting quantities and repeated entries."""
        if not rules.get('deck_construction', {}).get('singleton', False):
            return []

        counts: Counter = Counter()
        display: Dict[str, str] = {}
        for card in cards:
            if card.is_basic_land or is_basic_land_name(card.name):
                continue
            if "any number of cards named" in card.text:
                continue
            key = canonicalize_name(card.name)
            counts[key] += card.quantity
            display.setdefault(key, card.name)

        return [
            LegalityIssue(
                category='singleton',
                message=f"{display[key]} appears {count} times (singleton rule violation)",
                card_name=display[key],
            )
            for key, count in counts.items() if count > 1
        ]

    def _check_color_identity(
        self, cards: Sequence[Card], commander: Optional[Card], rules: Dict[str, Any]
    ) -> List[LegalityIssue]:
        if commander is None or not rules.get('special_rules', {}).get('color_identity', False):
            return []

        allowed = commander.color_identity
        return [
            LegalityIssue(
                category='color_identity',
                message=f"{card.name} has colors outside commander's identity",
                card_name=card.name,
            )
            for card in cards if not card.color_identity <= allowed
        ]

    def get_available_formats(self) -> List[str]:
        """Get list of available formats."""
        return list(self.format_rules.keys())

    def get_format_description(self, format_name: str) -> Optional[str]:
        """Get description of a format."""
        key = self.resolve_format(format_name)
        if key in self.format_rules:
            return self.format_rules[key].get('description', '')
        return None


def check_legality(
    cards: Sequence[Card],
    format_name: str = "commander",
    commander: Optional[Card] = None,
) -> LegalityResult:
    """Convenience wrapper returning the plain legality result."""
    return FormatChecker().check(cards, format_name, commander).to_result()
