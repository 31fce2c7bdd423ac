"""
Deck coach: turns a power gap into prioritized edit operations.

The coach only recommends. Applying operations to a deck is left to the
caller, in priority order (highest first).
"""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence, Tuple

from card_lists import has_compact_combo
from models import Card, CoachingOp, CoachingOperation, Subscores, expand_cards

logger = logging.getLogger(__name__)

WELL_TUNED_MESSAGE = "Deck power level is well-tuned for your target."
GAP_TOLERANCE = 1.0
WEAK_AREA_MIN_DEFICIT = 10
STRONG_AREA_MIN_SCORE = 70
MAX_FOCUS_AREAS = 3


# ===== TARGET PROFILES =====

TARGET_PROFILES: Tuple[Tuple[float, Dict[str, float]], ...] = (
    (9, {"speed": 85, "interaction": 80, "tutors": 90, "resilience": 75, "card_advantage": 70,
         "mana": 85, "consistency": 80, "stax_pressure": 40, "synergy": 60}),
    (7, {"speed": 70, "interaction": 70, "tutors": 60, "resilience": 60, "card_advantage": 65,
         "mana": 75, "consistency": 70, "stax_pressure": 20, "synergy": 70}),
    (4, {"speed": 50, "interaction": 55, "tutors": 30, "resilience": 45, "card_advantage": 50,
         "mana": 65, "consistency": 60, "stax_pressure": 10, "synergy": 65}),
    (float("-inf"), {"speed": 30, "interaction": 40, "tutors": 15, "resilience": 35,
                     "card_advantage": 40, "mana": 55, "consistency": 50, "stax_pressure": 5,
                     "synergy": 70}),
)


def target_subscores(target_power: float) -> Dict[str, float]:
    """Canned subscore targets for the target power tier."""
    for floor, profile in TARGET_PROFILES:
        if target_power >= floor:
            return profile
    return TARGET_PROFILES[-1][1]


def identify_weak_areas(subscores: Subscores, target_power: float) -> List[Tuple[str, float]]:
    """(area, deficit) pairs with deficit above the minimum, largest first."""
    targets = target_subscores(target_power)
    weak = []
    for area, score in subscores.as_dict().items():
        deficit = targets.get(area, 50) - score
        if deficit > WEAK_AREA_MIN_DEFICIT:
            weak.append((area, deficit))
    return sorted(weak, key=lambda item: item[1], reverse=True)


def _land_ratio(cards: Sequence[Card]) -> float:
    pool = expand_cards(cards)
    if not pool:
        return 0.0
    return sum(1 for card in pool if card.is_land) / len(pool)


# ===== ESCALATION =====

def _escalate(
    subscores: Subscores,
    gap: float,
    target_power: float,
    cards: Sequence[Card],
) -> Tuple[List[str], List[CoachingOperation]]:
    recs: List[str] = []
    ops: List[CoachingOperation] = []

    for index, (area, deficit) in enumerate(identify_weak_areas(subscores, target_power)[:MAX_FOCUS_AREAS]):
        priority = 10 - index * 2

        if area == "speed":
            recs.append("Add fast mana to accelerate your game plan")
            ops.append(CoachingOperation(
                op=CoachingOp.ADD_ROLE, role="fast_mana", qty=min(3, math.ceil(gap)),
                constraint="mv<=2", reason="Increase speed through fast mana acceleration",
                priority=priority,
            ))
        elif area == "interaction":
            needed = math.ceil(deficit / 15)
            recs.append(f"Add {needed} efficient removal or counterspells")
            ops.append(CoachingOperation(
                op=CoachingOp.ADD_ROLE, role="interaction", qty=needed, constraint="mv<=3",
                reason="Improve interaction density for higher power play", priority=priority,
            ))
        elif area == "tutors":
            needed = math.ceil(deficit / 20)
            recs.append(f"Add {needed} tutors to improve consistency")
            ops.append(CoachingOperation(
                op=CoachingOp.ADD_ROLE, role="tutor", qty=needed,
                reason="Increase consistency through tutoring effects", priority=priority,
            ))
        elif area == "mana":
            if _land_ratio(cards) < 0.35:
                recs.append("Add 2-3 lands to improve mana consistency")
                ops.append(CoachingOperation(
                    op=CoachingOp.ADD_ROLE, role="lands", qty=3,
                    reason="Improve mana base consistency", priority=priority,
                ))
            else:
                recs.append("Replace ETB tapped lands with untapped sources")
                ops.append(CoachingOperation(
                    op=CoachingOp.REDUCE_ETB_TAP, target_pct=0.25 if target_power >= 7 else 0.30,
                    reason="Improve mana curve through untapped sources", priority=priority,
                ))
        elif area == "card_advantage":
            recs.append("Add repeatable card draw engines")
            ops.append(CoachingOperation(
                op=CoachingOp.ADD_ROLE, role="card_advantage", qty=2, constraint="repeatable",
                reason="Improve late game through card advantage", priority=priority,
            ))
        elif area == "resilience":
            recs.append("Add protection or recursion effects")
            ops.append(CoachingOperation(
                op=CoachingOp.ADD_ROLE, role="protection", qty=2,
                reason="Improve deck resilience against disruption", priority=priority,
            ))
        elif area == "consistency":
            recs.append("Improve curve and add cheap card selection")
            ops.append(CoachingOperation(
                op=CoachingOp.IMPROVE_CURVE, reason="Smooth mana curve for better consistency",
                priority=priority,
            ))
        # synergy and stax_pressure have no generic add operation

    if target_power >= 7 and not has_compact_combo(card.name for card in cards):
        recs.append("Consider adding a compact win condition (2-3 card combo)")
        ops.append(CoachingOperation(
            op=CoachingOp.ADD_COMBO_LINE,
            reason="High power decks benefit from compact win conditions", priority=8,
        ))
    return recs, ops


# ===== DE-ESCALATION =====

def _deescalate(
    subscores: Subscores,
    gap: float,
    target_power: float,
    cards: Sequence[Card],
) -> Tuple[List[str], List[CoachingOperation]]:
    recs: List[str] = []
    ops: List[CoachingOperation] = []
    excess = abs(gap)

    strongest = sorted(
        ((area, score) for area, score in subscores.as_dict().items() if score > STRONG_AREA_MIN_SCORE),
        key=lambda item: item[1], reverse=True,
    )[:MAX_FOCUS_AREAS]

    for index, (area, _score) in enumerate(strongest):
        priority = 8 - index

        if area == "speed":
            recs.append("Remove fast mana and replace with fair ramp")
            ops.append(CoachingOperation(
                op=CoachingOp.REDUCE_ROLE, role="fast_mana", qty=math.ceil(excess),
                reason="Reduce speed to match target power level", priority=priority,
            ))
        elif area == "tutors":
            recs.append("Remove some tutors to reduce consistency")
            ops.append(CoachingOperation(
                op=CoachingOp.REDUCE_ROLE, role="tutor", qty=math.ceil(excess / 2),
                reason="Lower tutor density for target power level", priority=priority,
            ))
        elif area == "interaction":
            recs.append("Replace premium interaction with budget alternatives")
            ops.append(CoachingOperation(
                op=CoachingOp.REPLACE_PREMIUM_INTERACTION,
                reason="Use appropriate interaction for power level", priority=priority,
            ))
        elif area == "mana":
            recs.append("Add more ETB tapped lands to slow down the deck")
            ops.append(CoachingOperation(
                op=CoachingOp.INCREASE_ETB_TAP, target_pct=0.4,
                reason="Slow down mana development for lower power", priority=priority,
            ))

    if target_power <= 5 and has_compact_combo(card.name for card in cards):
        recs.append("Remove compact combos for a more casual experience")
        ops.append(CoachingOperation(
            op=CoachingOp.REMOVE_COMBO_LINES,
            reason="Compact combos are inappropriate for this power level", priority=9,
        ))
    return recs, ops


# ===== MAIN ENTRY POINT =====

def recommend(
    subscores: Subscores,
    target_power: float,
    current_power: float,
    cards: Sequence[Card],
) -> Tuple[List[str], List[CoachingOperation]]:
    """
    Recommendations and operations that move the deck toward target_power.

    Args:
        subscores: Current subscores
        target_power: Desired power (1-10)
        current_power: Current power (1-10)
        cards: The deck, commander included when there is one

    Returns:
        (recommendation strings, operations sorted by priority descending)
    """
    gap = round(target_power - current_power, 1)
    if abs(gap) <= GAP_TOLERANCE:
        return [WELL_TUNED_MESSAGE], []

    if gap > 0:
        recs, ops = _escalate(subscores, gap, target_power, cards)
    else:
        recs, ops = _deescalate(subscores, gap, target_power, cards)

    ops.sort(key=lambda op: op.priority, reverse=True)
    logger.debug("Coach gap %.1f -> %d operations", gap, len(ops))
    return recs, ops


def get_quick_fixes(gap: float, target_power: float) -> List[str]:
    """Generic suggestions for gaps larger than two points."""
    if gap <= 2:
        return []
    if target_power >= 7:
        return [
            "Add Sol Ring and 2 efficient tutors",
            "Include 2-3 free counterspells",
            "Add a compact combo as backup win condition",
        ]
    if target_power >= 4:
        return [
            "Add 2-3 signets and card draw engines",
            "Include efficient removal suite",
            "Improve mana base with dual lands",
        ]
    return [
        "Focus on curve and basic land fixing",
        "Add incremental card advantage",
        "Include board presence and protection",
    ]


def format_recommendations(recommendations: Sequence[str]) -> List[str]:
    """Number recommendation lines for display."""
    return [f"{index}. {rec}" for index, rec in enumerate(recommendations, 1)]
