"""
Feature extraction for EDH power scoring.

Every feature scans the commander plus each physical copy in the deck twice:
once against the weighted catalogs in card_lists (exact canonical name
match), then with oracle-text heuristics for cards the catalogs miss.
Per-card contributions add up and each feature total is clamped to [0, 100].
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Set

from card_lists import (
    FEATURE_CATALOGS,
    GAME_CHANGER_CLASS_CAP,
    GAME_CHANGER_CLASSES,
    HEURISTIC_TUTOR_QUALITY,
    TUTOR_TIERS,
    FeatureKind,
    find_combos,
    is_protection_staple,
    tier_name_for,
    tier_weight_for,
)
from models import Card, FeatureExtraction, GameChangerDetail, TutorDetail, expand_cards
from utils import canonicalize_name, clamp

logger = logging.getLogger(__name__)

FeatureFunction = Callable[[Sequence[Card], Optional[Card]], float]

TARGET_LAND_RATIO = 0.36
TAPPED_LAND_TOLERANCE = 0.30


def _catalog_total(cards: Sequence[Card], kind: FeatureKind) -> float:
    tiers = FEATURE_CATALOGS[kind]
    return sum(tier_weight_for(card.name, tiers) for card in cards)


# ===== TUTORS HELPERS =====

def _is_heuristic_tutor(card: Card) -> bool:
    text = card.text
    return "search" in text and "library" in text and "basic land" not in text


def _heuristic_tutor_points(card: Card) -> float:
    text = card.text
    if "any card" in text:
        return 8
    if "creature" in text or "artifact" in text or "enchantment" in text:
        return 6
    return 4


# ===== ONE FUNCTION PER FEATURE =====

def fast_mana_index(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    """Catalog fast mana plus cheap nonland mana producers."""
    total = _catalog_total(cards, FeatureKind.FAST_MANA)
    for card in cards:
        text = card.text
        if card.mana_value <= 2 and "add" in text and "mana" in text and not card.is_land:
            total += 2
    return clamp(total)


def tutor_density(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    """Catalog tutors plus library-search text that is not land ramp."""
    total = _catalog_total(cards, FeatureKind.TUTORS)
    for card in cards:
        if _is_heuristic_tutor(card):
            total += _heuristic_tutor_points(card)
    return clamp(total)


def interaction_density(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    """Counterspells, removal and sweepers, cheaper answers weighing more."""
    total = _catalog_total(cards, FeatureKind.INTERACTION)
    for card in cards:
        text = card.text
        mv = card.mana_value
        if "counter target" in text:
            total += 6 if mv <= 2 else 4
        if "destroy" in text or "exile" in text:
            if mv <= 2:
                total += 5
            elif mv <= 4:
                total += 3
            else:
                total += 2
        if "all creatures" in text or "each creature" in text:
            total += 6
    return clamp(total)


def wincon_compactness(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    """Known two-card combos, alternate win text and one-shot attackers."""
    total = 0.0
    for combo in find_combos(card.name for card in cards):
        total += 25 if combo.total_mv <= 7 else 15

    for card in cards:
        text = card.text
        if "win the game" in text or "wins the game" in text:
            total += 10
        if "combat damage to a player" in text and card.is_creature and card.power_value >= 21:
            total += 8
    return clamp(total)


def speed_proxy(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    """Blend of acceleration, tutors, cheap spells and combo compactness."""
    low_curve = sum(1 for card in cards if card.mana_value <= 2 and not card.is_land)
    speed = (fast_mana_index(cards) * 0.3
             + tutor_density(cards) * 0.25
             + low_curve * 1.5
             + wincon_compactness(cards) * 0.2)
    return clamp(speed)


def resilience_index(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    total = 0.0
    for card in cards:
        text = card.text
        if any(word in text for word in ("protection", "hexproof", "ward", "indestructible")):
            total += 6
        if "return" in text and "graveyard" in text and "hand" in text:
            total += 5
        if (card.mana_value == 0 and not card.is_land) or "without paying" in text:
            total += 4
        if is_protection_staple(card.name):
            total += 8
    return clamp(total)


def _is_fixing_land(card: Card) -> bool:
    text = card.text
    return ("any color" in text
            or "Dual" in card.type_line
            or ("search" in text and "land" in text))


def mana_quality(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    """
    Land ratio score plus fixing bonus, minus a tapped-land penalty.

    The ratio score peaks at a 36% land share, fixing adds up to 40 and the
    penalty grows once more than 30% of lands enter tapped.
    """
    lands = [card for card in cards if card.is_land]
    if not lands:
        return 0.0

    tapped_ratio = sum(1 for land in lands if land.enters_tapped) / len(lands)
    tapped_penalty = max(0.0, (tapped_ratio - TAPPED_LAND_TOLERANCE) * 30)

    land_ratio = len(lands) / len(cards)
    ratio_score = max(0.0, 100 - abs(land_ratio - TARGET_LAND_RATIO) * 200)

    fixing = sum(1 for land in lands if _is_fixing_land(land))
    fixing_score = min(fixing / len(lands) * 100, 40)

    return clamp(ratio_score + fixing_score - tapped_penalty)


# Effect categories counted for redundancy
REDUNDANCY_CATEGORIES: Dict[str, Callable[[str], bool]] = {
    "draw": lambda text: "draw" in text and "card" in text,
    "removal": lambda text: "destroy" in text or "exile" in text,
    "counter": lambda text: "counter target" in text,
    "tutor": lambda text: "search" in text and "library" in text,
}


def _redundancy_score(cards: Sequence[Card]) -> float:
    score = 0.0
    for matches in REDUNDANCY_CATEGORIES.values():
        count = sum(1 for card in cards if matches(card.text))
        if count >= 2:
            score += min(count * 5, 20)
    return min(score, 40)


def _dead_card_risk(cards: Sequence[Card]) -> float:
    risk = 0.0
    for card in cards:
        text = card.text
        if "if you control" in text and "with" in text:
            risk += 2
        if card.mana_value > 8 and "win the game" not in text:
            risk += 3
        if "only if" in text or "only during" in text:
            risk += 2
    return min(risk, 30)


def consistency_metrics(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    nonlands = [card for card in cards if not card.is_land]
    low = sum(1 for card in nonlands if card.mana_value <= 2)
    mid = sum(1 for card in nonlands if 3 <= card.mana_value <= 5)
    high = sum(1 for card in nonlands if card.mana_value > 5)
    curve_score = min(100, low * 2 + mid - high * 0.5)

    total = (curve_score + _redundancy_score(cards) - _dead_card_risk(cards)) / 2
    return clamp(total)


def synergy_tags(card: Card) -> Set[str]:
    """Mechanical labels used to compare deck cards with the commander."""
    text = card.text
    type_line = card.type_line.lower()
    tags = set()
    if "+1/+1 counter" in text:
        tags.add("counters")
    if "tribal" in text or "tribal" in type_line:
        tags.add("tribal")
    if "spell" in text and "cast" in text:
        tags.add("spellslinger")
    if "treasure" in text:
        tags.add("treasures")
    if "enter" in text and "battlefield" in text:
        tags.add("etb")
    if "sacrifice" in text:
        tags.add("sacrifice")
    if "graveyard" in text:
        tags.add("graveyard")
    if "artifact" in text:
        tags.add("artifacts")
    if "enchantment" in text:
        tags.add("enchantments")
    return tags


def synergy_score(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    """Average tag overlap with the commander; neutral 50 without one."""
    if commander is None:
        return 50.0
    if not cards:
        return 0.0
    commander_tags = synergy_tags(commander)
    overlap = sum(len(commander_tags & synergy_tags(card)) for card in cards)
    return clamp(overlap / len(cards) * 100)


def stax_pressure(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    total = _catalog_total(cards, FeatureKind.STAX)
    for card in cards:
        text = card.text
        if "cost" in text and "more" in text and "mana" in text:
            total += 4
        if "can't" in text or "don't untap" in text:
            total += 5
    return clamp(total)


def card_advantage_engines(cards: Sequence[Card], commander: Optional[Card] = None) -> float:
    total = _catalog_total(cards, FeatureKind.CARD_ADVANTAGE)
    for card in cards:
        text = card.text
        if "draw" in text and "card" in text and ("each" in text or "whenever" in text):
            total += 6
        if "draw" in text and "additional" in text:
            total += 5
    return clamp(total)


FEATURE_FUNCTIONS: Dict[FeatureKind, FeatureFunction] = {
    FeatureKind.FAST_MANA: fast_mana_index,
    FeatureKind.TUTORS: tutor_density,
    FeatureKind.INTERACTION: interaction_density,
    FeatureKind.WINCON: wincon_compactness,
    FeatureKind.SPEED: speed_proxy,
    FeatureKind.RESILIENCE: resilience_index,
    FeatureKind.MANA: mana_quality,
    FeatureKind.CONSISTENCY: consistency_metrics,
    FeatureKind.SYNERGY: synergy_score,
    FeatureKind.STAX: stax_pressure,
    FeatureKind.CARD_ADVANTAGE: card_advantage_engines,
}


# ===== EXPLAINABILITY DETAILS =====

def find_tutors(cards: Sequence[Card]) -> List[TutorDetail]:
    """One entry per distinct tutor, tagged with its catalog tier."""
    found: List[TutorDetail] = []
    seen: Set[str] = set()
    for card in cards:
        key = canonicalize_name(card.name)
        if key in seen:
            continue
        tier = tier_name_for(card.name, TUTOR_TIERS)
        if tier is not None:
            quality = TUTOR_TIERS[tier].quality
        elif _is_heuristic_tutor(card):
            tier, quality = "heuristic", HEURISTIC_TUTOR_QUALITY
        else:
            continue
        seen.add(key)
        found.append(TutorDetail(name=card.name, tier=tier, quality=quality,
                                 mana_value=card.mana_value))
    return found


def find_game_changers(cards: Sequence[Card]) -> List[GameChangerDetail]:
    """Game-changing cards by class, at most GAME_CHANGER_CLASS_CAP per class."""
    found: List[GameChangerDetail] = []
    for category, klass in GAME_CHANGER_CLASSES.items():
        seen: Set[str] = set()
        for card in cards:
            key = canonicalize_name(card.name)
            if key in klass.cards and key not in seen:
                seen.add(key)
                found.append(GameChangerDetail(name=card.name, category=category,
                                               reason=klass.reason))
                if len(seen) >= GAME_CHANGER_CLASS_CAP:
                    break
    return found


# ===== MAIN ENTRY POINT =====

def extract_features(cards: Sequence[Card], commander: Optional[Card] = None) -> FeatureExtraction:
    """
    Extract the full feature vector for a deck.

    Args:
        cards: Deck cards (quantities are expanded to physical copies)
        commander: Optional commander card, scanned along with the deck

    Returns:
        FeatureExtraction with every feature in [0, 100]
    """
    pool = expand_cards(cards)
    if commander is not None:
        pool.insert(0, commander)

    values = {kind.value: FEATURE_FUNCTIONS[kind](pool, commander) for kind in FeatureKind}
    tutors = find_tutors(pool)
    game_changers = find_game_changers(pool)

    logger.debug(
        "Extracted features for %d cards: %s (%d tutors, %d game changers)",
        len(pool), {k: round(v, 1) for k, v in values.items()}, len(tutors), len(game_changers),
    )
    return FeatureExtraction(tutors=tuple(tutors), game_changers=tuple(game_changers), **values)

