"""
Synergy detection module for deck analysis.
Extracts mechanics, scores synergy pairs, matches archetypes and suggests
focused improvements. Runs independently of the power pipeline.
"""
from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from card_lists import find_combos
from models import Card
from utils import get_primary_type

logger = logging.getLogger(__name__)


# ===== DATA MODELS =====

@dataclass(frozen=True)
class SynergyPair:
    """
    Two mechanics or two cards that work together.
    synergy_type is one of mechanical, thematic, combo, tribal, color, curve.
    """
    card_a: str
    card_b: str
    synergy_type: str
    strength: float  # 0-10
    description: str
    examples: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ArchetypeMatch:
    """How well the deck fits one archetype"""
    name: str
    confidence: float  # 0-100
    description: str
    key_cards: Tuple[str, ...]
    missing_cards: Tuple[str, ...]
    synergy_score: float
    category: str
    tags: Tuple[str, ...]


@dataclass(frozen=True)
class ImprovementSuggestion:
    """An add/remove/replace suggestion. Higher priority first."""
    type: str
    cards: Tuple[str, ...]
    reason: str
    priority: int


@dataclass(frozen=True)
class MechanicCluster:
    """Cards sharing a mechanic and how far the mechanic could go"""
    mechanic: str
    cards: Tuple[str, ...]
    coverage: float  # percent of deck
    potential: float  # 0-100


@dataclass(frozen=True)
class SynergyAnalysis:
    """Complete synergy analysis"""
    total_synergy_score: float
    strongest_synergies: Tuple[SynergyPair, ...]
    archetype_matches: Tuple[ArchetypeMatch, ...]
    improvement_suggestions: Tuple[ImprovementSuggestion, ...]
    mechanic_clusters: Tuple[MechanicCluster, ...]
    combo_presence: bool = False
    compact_combo_count: int = 0
    mechanics: Dict[str, int] = field(default_factory=dict)  # For debugging

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ===== MECHANIC & ARCHETYPE DEFINITIONS =====

@dataclass(frozen=True)
class MechanicSynergy:
    """Mechanics that reinforce (or undercut) one mechanic"""
    synergies: Tuple[str, ...]
    strength: float
    anti_synergies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ArchetypeDefinition:
    """Defines a known archetype"""
    name: str
    category: str  # aggro, control, midrange, combo, tribal, ramp, tempo
    description: str
    key_mechanics: Tuple[str, ...]
    card_types: Tuple[str, ...]
    cmc_min: float
    cmc_max: float
    cmc_peak: float
    tags: Tuple[str, ...]


MECHANIC_SYNERGIES: Dict[str, MechanicSynergy] = {
    # Artifacts
    "affinity": MechanicSynergy(("artifact", "metalcraft", "improvise"), 8),
    "metalcraft": MechanicSynergy(("artifact", "affinity", "improvise"), 7),
    "improvise": MechanicSynergy(("artifact", "affinity", "metalcraft"), 7),
    # Graveyard
    "delve": MechanicSynergy(("self-mill", "flashback", "escape"), 8, ("exile-graveyard",)),
    "flashback": MechanicSynergy(("self-mill", "delve", "threshold"), 7, ("exile-graveyard",)),
    "escape": MechanicSynergy(("self-mill", "delve"), 7, ("exile-graveyard",)),
    "threshold": MechanicSynergy(("self-mill", "flashback"), 6),
    # Creatures
    "tribal": MechanicSynergy(("tribal-support", "creature-based"), 8, ("board-wipe",)),
    "tokens": MechanicSynergy(("tribal", "go-wide", "anthem"), 7, ("board-wipe",)),
    "counters": MechanicSynergy(("proliferate", "counter-support"), 7),
    # Spells
    "storm": MechanicSynergy(("cheap-spells", "ritual", "cantrip"), 9),
    "prowess": MechanicSynergy(("cheap-spells", "cantrip", "instant-sorcery"), 7),
    "spellslinger": MechanicSynergy(("instant-sorcery", "cantrip", "cheap-spells"), 7),
    # Resources
    "energy": MechanicSynergy(("energy-generation", "energy-payoff"), 8),
    "landfall": MechanicSynergy(("ramp", "extra-lands", "fetchlands"), 7),
    "lifegain": MechanicSynergy(("lifegain-payoff",), 6),
    # Control
    "control": MechanicSynergy(("card-draw", "removal", "counterspell"), 7, ("aggro",)),
    "card-advantage": MechanicSynergy(("control", "midrange"), 6, ("aggro",)),
}


def get_default_archetypes() -> List[ArchetypeDefinition]:
    """
    Returns the standard set of archetypes matched against every deck.
    """
    archetypes = []

    archetypes.append(ArchetypeDefinition(
        name="Aggro Burn",
        category="aggro",
        description="Fast damage-based strategy with efficient creatures and burn spells",
        key_mechanics=("haste", "direct-damage", "cheap-creatures"),
        card_types=("Creature", "Instant", "Sorcery"),
        cmc_min=1, cmc_max=4, cmc_peak=2,
        tags=("red", "fast", "linear"),
    ))

    archetypes.append(ArchetypeDefinition(
        name="Control",
        category="control",
        description="Long-game strategy with removal, card draw, and powerful finishers",
        key_mechanics=("counterspell", "removal", "card-draw"),
        card_types=("Instant", "Sorcery", "Planeswalker"),
        cmc_min=2, cmc_max=8, cmc_peak=4,
        tags=("blue", "white", "reactive", "late-game"),
    ))

    archetypes.append(ArchetypeDefinition(
        name="Midrange",
        category="midrange",
        description="Balanced strategy with efficient threats and interaction",
        key_mechanics=("versatile-removal", "efficient-threats", "card-advantage"),
        card_types=("Creature", "Instant", "Sorcery", "Planeswalker"),
        cmc_min=2, cmc_max=6, cmc_peak=3,
        tags=("balanced", "flexible", "threat-dense"),
    ))

    archetypes.append(ArchetypeDefinition(
        name="Combo",
        category="combo",
        description="Strategy focused on specific card combinations for instant wins",
        key_mechanics=("combo-piece", "tutor", "protection"),
        card_types=("Instant", "Sorcery", "Artifact", "Enchantment"),
        cmc_min=0, cmc_max=6, cmc_peak=2,
        tags=("linear", "all-in", "explosive"),
    ))

    archetypes.append(ArchetypeDefinition(
        name="Tribal Aggro",
        category="tribal",
        description="Creature-based strategy leveraging tribal synergies",
        key_mechanics=("tribal", "lord-effects", "tribal-support"),
        card_types=("Creature", "Tribal"),
        cmc_min=1, cmc_max=4, cmc_peak=2,
        tags=("creature-based", "synergistic", "tribal"),
    ))

    archetypes.append(ArchetypeDefinition(
        name="Ramp",
        category="ramp",
        description="Strategy focused on accelerating mana to cast powerful spells",
        key_mechanics=("ramp", "big-mana", "expensive-payoffs"),
        card_types=("Creature", "Sorcery", "Artifact"),
        cmc_min=1, cmc_max=10, cmc_peak=6,
        tags=("green", "big-mana", "late-game"),
    ))

    archetypes.append(ArchetypeDefinition(
        name="Artifacts",
        category="combo",
        description="Strategy built around artifact synergies and interactions",
        key_mechanics=("artifact", "affinity", "metalcraft"),
        card_types=("Artifact", "Creature"),
        cmc_min=0, cmc_max=6, cmc_peak=2,
        tags=("artifact-based", "synergistic", "explosive"),
    ))

    archetypes.append(ArchetypeDefinition(
        name="Tempo",
        category="tempo",
        description="Strategy focused on efficient threats backed by disruption",
        key_mechanics=("efficient-creatures", "cheap-interaction", "flash"),
        card_types=("Creature", "Instant"),
        cmc_min=1, cmc_max=4, cmc_peak=2,
        tags=("blue", "efficient", "disruptive"),
    ))

    return archetypes


# ===== MECHANIC EXTRACTION =====

MECHANIC_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\baffinity\b"), "affinity"),
    (re.compile(r"\bmetalcraft\b"), "metalcraft"),
    (re.compile(r"\bdelve\b"), "delve"),
    (re.compile(r"\bflashback\b"), "flashback"),
    (re.compile(r"\bstorm\b"), "storm"),
    (re.compile(r"\bprowess\b"), "prowess"),
    (re.compile(r"\blandfall\b"), "landfall"),
    (re.compile(r"\benergy\b"), "energy"),
    (re.compile(r"enters the battlefield"), "etb"),
    (re.compile(r"when .* dies"), "death-trigger"),
    (re.compile(r"sacrifice"), "sacrifice"),
    (re.compile(r"draw.*card"), "card-draw"),
    (re.compile(r"counter target"), "counterspell"),
    (re.compile(r"destroy target"), "removal"),
    (re.compile(r"deal.*damage"), "direct-damage"),
    (re.compile(r"gain.*life"), "lifegain"),
    (re.compile(r"search.*library"), "tutor"),
    (re.compile(r"\+1/\+1 counter"), "counters"),
    (re.compile(r"token"), "tokens"),
]

CREATURE_TYPES = (
    "human", "elf", "goblin", "zombie", "soldier", "wizard", "warrior",
    "angel", "demon", "dragon", "beast", "elemental", "spirit", "vampire",
    "werewolf", "knight", "rogue", "cleric", "shaman", "druid", "artificer",
)


def card_mechanics(card: Card) -> Set[str]:
    """All mechanic labels one card carries."""
    mechanics = {keyword.lower() for keyword in card.keywords}
    text = card.text
    for pattern, mechanic in MECHANIC_PATTERNS:
        if pattern.search(text):
            mechanics.add(mechanic)

    type_line = card.type_line.lower()
    if "artifact" in type_line:
        mechanics.add("artifact")
    if "tribal" in type_line or "kindred" in type_line:
        mechanics.add("tribal")
    if "creature" in type_line:
        subtypes = type_line.split("—", 1)[1] if "—" in type_line else ""
        for creature_type in CREATURE_TYPES:
            if creature_type in subtypes:
                mechanics.add(f"tribal-{creature_type}")
    return mechanics


def extract_mechanics(cards: Sequence[Card]) -> Tuple[Dict[str, int], Dict[str, List[str]]]:
    """
    Count mechanics across the deck (weighted by quantity).

    Returns:
        (mechanic -> count, mechanic -> supporting card names)
    """
    counts: Dict[str, int] = defaultdict(int)
    members: Dict[str, List[str]] = defaultdict(list)
    for card in cards:
        for mechanic in sorted(card_mechanics(card)):
            counts[mechanic] += card.quantity
            members[mechanic].append(card.name)
    return dict(counts), dict(members)


# ===== DECK SHAPE =====

def _total_cards(cards: Sequence[Card]) -> int:
    return sum(card.quantity for card in cards)


def type_distribution(cards: Sequence[Card]) -> Dict[str, float]:
    """Primary type -> share of the deck (0-1)."""
    total = _total_cards(cards)
    dist: Dict[str, float] = defaultdict(float)
    for card in cards:
        dist[get_primary_type(card.type_line)] += card.quantity
    return {key: value / total for key, value in dist.items()} if total else {}


def average_cmc(cards: Sequence[Card]) -> float:
    total = _total_cards(cards)
    if not total:
        return 0.0
    return sum(card.mana_value * card.quantity for card in cards) / total


def extract_themes(cards: Sequence[Card]) -> List[str]:
    """Deck-level theme tags from type, color and curve distribution."""
    themes = []
    types = type_distribution(cards)
    if types.get("Creature", 0) > 0.6:
        themes.append("creature-based")
    if types.get("Instant", 0) + types.get("Sorcery", 0) > 0.5:
        themes.append("spell-based")
    if types.get("Artifact", 0) > 0.3:
        themes.append("artifact-based")

    total = _total_cards(cards)
    color_counts: Dict[str, int] = defaultdict(int)
    for card in cards:
        for color in card.color_identity or card.colors:
            color_counts[color] += card.quantity
    dominant = [color for color, count in color_counts.items() if count > total * 0.3]
    if len(dominant) == 1:
        themes.append("mono-color")
    elif len(dominant) == 2:
        themes.append("two-color")
    elif len(dominant) >= 3:
        themes.append("multicolor")

    avg = average_cmc(cards)
    if avg < 2.5:
        themes.append("low-curve")
    elif avg > 4:
        themes.append("high-curve")
    return themes


# ===== SYNERGY PAIRS =====

def find_mechanic_synergies(mechanics: Dict[str, int]) -> List[SynergyPair]:
    """Pairs from the static mechanic graph, scaled by how balanced the counts are."""
    pairs = []
    for mechanic_a, count_a in mechanics.items():
        rule = MECHANIC_SYNERGIES.get(mechanic_a)
        if count_a <= 0 or rule is None:
            continue
        for mechanic_b in rule.synergies:
            count_b = mechanics.get(mechanic_b, 0)
            if count_b <= 0:
                continue
            strength = min(10.0, rule.strength * min(count_a, count_b) / max(count_a, count_b))
            pairs.append(SynergyPair(
                card_a=mechanic_a,
                card_b=mechanic_b,
                synergy_type="mechanical",
                strength=strength,
                description=f"{mechanic_a} synergizes with {mechanic_b}",
                examples=(f"Cards with {mechanic_a}", f"Cards with {mechanic_b}"),
            ))
    return pairs


def card_pair_synergy(card_a: Card, card_b: Card) -> SynergyPair:
    """Heuristic synergy between two cards. The last matching rule sets the type."""
    strength = 0.0
    synergy_type = "thematic"
    description = ""

    shared_colors = sorted(card_a.colors & card_b.colors)
    if shared_colors:
        strength += 1
        synergy_type = "color"
        description = f"Shared colors: {', '.join(shared_colors)}"

    if card_a.is_creature and card_b.is_creature:
        strength += 2
        synergy_type = "tribal"
        description = "Both are creatures"

    if abs(card_a.mana_value - card_b.mana_value) <= 1:
        strength += 1
        synergy_type = "curve"
        description += " Similar mana costs"

    shared_keywords = sorted(card_a.keywords & card_b.keywords)
    if shared_keywords:
        strength += len(shared_keywords)
        synergy_type = "mechanical"
        description += f" Shared mechanics: {', '.join(shared_keywords)}"

    return SynergyPair(
        card_a=card_a.name,
        card_b=card_b.name,
        synergy_type=synergy_type,
        strength=min(10.0, strength),
        description=description.strip() or "Generic synergy",
    )


def find_card_synergies(cards: Sequence[Card], min_strength: float = 5) -> List[SynergyPair]:
    """Every card pair (O(n^2)) stronger than min_strength."""
    pairs = []
    for i, card_a in enumerate(cards):
        for card_b in cards[i + 1:]:
            pair = card_pair_synergy(card_a, card_b)
            if pair.strength > min_strength:
                pairs.append(pair)
    return pairs


# ===== ARCHETYPE MATCHING =====

def score_archetype(
    archetype: ArchetypeDefinition,
    cards: Sequence[Card],
    mechanics: Dict[str, int],
    themes: Sequence[str],
) -> ArchetypeMatch:
    """Confidence from mechanics, types, curve, themes and a deck-size synergy term."""
    confidence = 0.0
    key_cards = []
    missing = []

    for mechanic in archetype.key_mechanics:
        count = mechanics.get(mechanic, 0)
        if count > 0:
            key_cards.append(f"{count} cards with {mechanic}")
            confidence += min(20, count * 2)
        else:
            missing.append(f"Cards with {mechanic}")

    types = type_distribution(cards)
    confidence += sum(types.get(card_type, 0) * 20 for card_type in archetype.card_types)

    avg = average_cmc(cards)
    if archetype.cmc_min <= avg <= archetype.cmc_max:
        confidence += 30 if abs(avg - archetype.cmc_peak) <= 0.5 else 20

    confidence += sum(10 for theme in themes if theme in archetype.tags)

    synergy_score = min(30.0, len(cards) * 0.5)
    confidence += synergy_score

    return ArchetypeMatch(
        name=archetype.name,
        confidence=min(100.0, confidence),
        description=archetype.description,
        key_cards=tuple(key_cards),
        missing_cards=tuple(missing),
        synergy_score=synergy_score,
        category=archetype.category,
        tags=archetype.tags,
    )


def match_archetypes(
    cards: Sequence[Card],
    mechanics: Dict[str, int],
    themes: Sequence[str],
    archetypes: Optional[List[ArchetypeDefinition]] = None,
    min_confidence: float = 10,
) -> List[ArchetypeMatch]:
    if archetypes is None:
        archetypes = get_default_archetypes()
    matches = [score_archetype(a, cards, mechanics, themes) for a in archetypes]
    viable = [m for m in matches if m.confidence > min_confidence]
    return sorted(viable, key=lambda m: m.confidence, reverse=True)


# ===== SUGGESTIONS & CLUSTERS =====

def generate_improvement_suggestions(
    mechanics: Dict[str, int],
    archetype_matches: Sequence[ArchetypeMatch],
) -> List[ImprovementSuggestion]:
    suggestions = []

    if archetype_matches:
        top = archetype_matches[0]
        if top.confidence > 30 and top.missing_cards:
            suggestions.append(ImprovementSuggestion(
                type="add",
                cards=top.missing_cards[:3],
                reason=f"Strengthen {top.name} strategy",
                priority=8,
            ))

    strong = sorted(((m, c) for m, c in mechanics.items() if c >= 3), key=lambda item: item[1], reverse=True)
    for mechanic, count in strong:
        if count < 6 and mechanic in MECHANIC_SYNERGIES:
            suggestions.append(ImprovementSuggestion(
                type="add",
                cards=(f"More {mechanic} cards",),
                reason=f"Increase {mechanic} density for better synergy",
                priority=min(7, count),
            ))

    one_offs = [mechanic for mechanic, count in mechanics.items() if count == 1]
    if one_offs:
        suggestions.append(ImprovementSuggestion(
            type="remove",
            cards=tuple(one_offs[:2]),
            reason="Remove inconsistent one-offs for better focus",
            priority=5,
        ))

    return sorted(suggestions, key=lambda s: s.priority, reverse=True)


def analyze_mechanic_clusters(
    cards: Sequence[Card],
    mechanics: Dict[str, int],
    members: Dict[str, List[str]],
) -> List[MechanicCluster]:
    total = _total_cards(cards)
    clusters = []
    for mechanic, count in mechanics.items():
        if count <= 0:
            continue
        coverage = count / total * 100
        potential = coverage
        rule = MECHANIC_SYNERGIES.get(mechanic)
        if rule is not None:
            potential += sum(rule.strength for other in rule.synergies if mechanics.get(other, 0) > 0)
        clusters.append(MechanicCluster(
            mechanic=mechanic,
            cards=tuple(members.get(mechanic, ())),
            coverage=coverage,
            potential=min(100.0, potential),
        ))
    return sorted(clusters, key=lambda c: c.potential, reverse=True)


# ===== MAIN ENTRY POINT =====

def analyze_synergy(
    cards: Sequence[Card],
    format: str = "commander",
    commander: Optional[Card] = None,
    archetypes: Optional[List[ArchetypeDefinition]] = None,
) -> SynergyAnalysis:
    """
    Full synergy evaluation pipeline.

    Args:
        cards: Deck cards
        format: Format name (informational)
        commander: Optional commander, analyzed as part of the pool
        archetypes: Optional custom archetypes (uses defaults if None)

    Returns:
        Complete SynergyAnalysis
    """
    pool = ([commander] if commander is not None else []) + list(cards)
    if not pool:
        return SynergyAnalysis(0.0, (), (), (), ())

    # 1) Mechanics and themes
    mechanics, members = extract_mechanics(pool)
    themes = extract_themes(pool)

    # 2) Synergy pairs
    pairs = find_mechanic_synergies(mechanics) + find_card_synergies(pool)
    pairs.sort(key=lambda p: p.strength, reverse=True)
    total_score = sum(p.strength for p in pairs)

    # 3) Archetypes
    matches = match_archetypes(pool, mechanics, themes, archetypes)

    # 4) Suggestions and clusters
    suggestions = generate_improvement_suggestions(mechanics, matches)
    clusters = analyze_mechanic_clusters(pool, mechanics, members)

    # 5) Combos from the shared catalog
    combos = find_combos(card.name for card in pool)

    logger.debug("Synergy for %s deck: %d mechanics, %d pairs, top archetype %s",
                 format, len(mechanics), len(pairs), matches[0].name if matches else None)

    return SynergyAnalysis(
        total_synergy_score=total_score,
        strongest_synergies=tuple(pairs[:10]),
        archetype_matches=tuple(matches[:5]),
        improvement_suggestions=tuple(suggestions),
        mechanic_clusters=tuple(clusters),
        combo_presence=bool(combos),
        compact_combo_count=sum(1 for combo in combos if combo.total_mv <= 7),
        mechanics=mechanics,
    )


# ===== REPORTING =====

def generate_synergy_summary(analysis: SynergyAnalysis) -> str:
    """Generate human-readable synergy summary"""
    lines = []
    lines.append("=" * 60)
    lines.append("SYNERGY ANALYSIS")
    lines.append("=" * 60)
    lines.append(f"Total synergy score: {analysis.total_synergy_score:.1f}")
    if analysis.combo_presence:
        lines.append(f"Compact combos detected: {analysis.compact_combo_count}")
    lines.append("")

    if analysis.archetype_matches:
        lines.append("Archetypes:")
        for match in analysis.archetype_matches:
            lines.append(f"  {match.name}: {match.confidence:.0f}% ({match.category})")
    else:
        lines.append("No archetype matched.")

    if analysis.mechanic_clusters:
        lines.append("")
        lines.append("Top mechanics:")
        for cluster in analysis.mechanic_clusters[:5]:
            lines.append(f"  {cluster.mechanic}: {len(cluster.cards)} cards, "
                         f"{cluster.coverage:.1f}% coverage, potential {cluster.potential:.0f}")

    if analysis.improvement_suggestions:
        lines.append("")
        lines.append("Suggestions:")
        for suggestion in analysis.improvement_suggestions:
            lines.append(f"  [{suggestion.type}] {', '.join(suggestion.cards)} - {suggestion.reason}")

    return "\n".join(lines)
