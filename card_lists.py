"""
Single source of truth for the weighted reference catalogs.
All card names are stored in lowercase for consistent matching.

IMPORTANT: Use utils.canonicalize_name() for matching deck cards against these lists.
Tables are read-only and shared by every analysis; bump CATALOG_VERSION when
any weight or card list changes so scores stay auditable.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from utils import canonicalize_name


CATALOG_VERSION = "2024.10"


@dataclass(frozen=True)
class CatalogTier:
    """One weighted tier of a catalog table."""
    weight: float
    cards: FrozenSet[str]
    quality: float = 0.0  # Only meaningful for tutor tiers


@dataclass(frozen=True)
class ComboDefinition:
    """A known two-card combo. Pieces are matched by substring against card names."""
    cards: Tuple[str, ...]
    total_mv: int
    description: str


@dataclass(frozen=True)
class GameChangerClass:
    """A class of game-changing cards with the rationale reported for each hit."""
    cards: FrozenSet[str]
    reason: str


class FeatureKind(str, Enum):
    """The eleven features produced by the feature extractor."""
    FAST_MANA = "fast_mana_index"
    TUTORS = "tutor_density"
    INTERACTION = "interaction_density"
    WINCON = "wincon_compactness"
    SPEED = "speed_proxy"
    RESILIENCE = "resilience_index"
    MANA = "mana_quality"
    CONSISTENCY = "consistency_metrics"
    SYNERGY = "synergy_score"
    STAX = "stax_pressure"
    CARD_ADVANTAGE = "card_advantage_engines"


# =========================================================================
# FAST MANA
# Mana acceleration that costs two or less to deploy.
# =========================================================================
FAST_MANA_TIERS: Mapping[str, CatalogTier] = {
    "premium": CatalogTier(weight=15, cards=frozenset({
        "mana crypt",
        "sol ring",
        "jeweled lotus",
        "mana vault",
        "chrome mox",
        "mox diamond",
        "mox opal",
        "mox amber",
        "lotus petal",
        "lion's eye diamond",
        "grim monolith",
        "ancient tomb",
        "dark ritual",
        "elvish spirit guide",
        "simian spirit guide",
    })),
    "efficient": CatalogTier(weight=8, cards=frozenset({
        "arcane signet",
        "fellwar stone",
        "mind stone",
        "basalt monolith",
        "cabal ritual",
        "springleaf drum",
        "birds of paradise",
        "llanowar elves",
        "elvish mystic",
        "fyndhorn elves",
        "noble hierarch",
        "avacyn's pilgrim",
        "talisman of dominance",
        "talisman of progress",
        "talisman of conviction",
        "talisman of resilience",
        "talisman of impulse",
        "talisman of creativity",
        "talisman of hierarchy",
        "talisman of indulgence",
        "talisman of unity",
        "talisman of curiosity",
        "carpet of flowers",
        "utopia sprawl",
        "wild growth",
    })),
    "standard": CatalogTier(weight=4, cards=frozenset({
        "azorius signet",
        "boros signet",
        "dimir signet",
        "golgari signet",
        "gruul signet",
        "izzet signet",
        "orzhov signet",
        "rakdos signet",
        "selesnya signet",
        "simic signet",
        "thought vessel",
        "prismatic lens",
        "everflowing chalice",
        "coldsteel heart",
        "rampant growth",
        "nature's lore",
        "three visits",
        "farseek",
    })),
}


# =========================================================================
# TUTORS
# Quality points feed the tutor diagnostics; weight feeds tutor density.
# =========================================================================
TUTOR_TIERS: Mapping[str, CatalogTier] = {
    "premium": CatalogTier(weight=12, quality=2.0, cards=frozenset({
        "demonic tutor",
        "vampiric tutor",
        "imperial seal",
        "mystical tutor",
        "enlightened tutor",
        "worldly tutor",
        "gamble",
        "intuition",
        "diabolic intent",
        "grim tutor",
        "demonic consultation",
        "tainted pact",
    })),
    "efficient": CatalogTier(weight=8, quality=1.0, cards=frozenset({
        "personal tutor",
        "sylvan tutor",
        "merchant scroll",
        "green sun's zenith",
        "chord of calling",
        "finale of devastation",
        "eladamri's call",
        "natural order",
        "crop rotation",
        "survival of the fittest",
        "entomb",
        "buried alive",
        "gifts ungiven",
        "idyllic tutor",
        "muddle the mixture",
        "wishclaw talisman",
    })),
    "restricted": CatalogTier(weight=4, quality=0.5, cards=frozenset({
        "diabolic tutor",
        "beseech the queen",
        "dimir machinations",
        "steelshaper's gift",
        "open the armory",
        "fabricate",
        "trophy mage",
        "tribute mage",
        "stoneforge mystic",
        "scheming symmetry",
        "fauna shaman",
        "ranger-captain of eos",
    })),
}

HEURISTIC_TUTOR_QUALITY = 0.5


# =========================================================================
# INTERACTION
# =========================================================================
INTERACTION_TIERS: Mapping[str, CatalogTier] = {
    "premium": CatalogTier(weight=10, cards=frozenset({
        "force of will",
        "fierce guardianship",
        "force of negation",
        "pact of negation",
        "mana drain",
        "swan song",
        "flusterstorm",
        "mental misstep",
        "deflecting swat",
        "swords to plowshares",
        "path to exile",
        "cyclonic rift",
        "deadly rollick",
        "snuff out",
        "an offer you can't refuse",
        "mindbreak trap",
    })),
    "efficient": CatalogTier(weight=6, cards=frozenset({
        "counterspell",
        "arcane denial",
        "negate",
        "dovin's veto",
        "beast within",
        "chaos warp",
        "generous gift",
        "anguished unmaking",
        "assassin's trophy",
        "vindicate",
        "nature's claim",
        "lightning bolt",
        "fatal push",
        "infernal grasp",
        "rapid hybridization",
        "pongify",
        "toxic deluge",
        "feed the swarm",
    })),
    "standard": CatalogTier(weight=3, cards=frozenset({
        "doom blade",
        "murder",
        "putrefy",
        "wrath of god",
        "damnation",
        "blasphemous act",
        "cancel",
        "terminate",
        "mortify",
        "krosan grip",
        "return to dust",
        "austere command",
    })),
}


# =========================================================================
# STAX
# =========================================================================
STAX_TIERS: Mapping[str, CatalogTier] = {
    "hard": CatalogTier(weight=10, cards=frozenset({
        "winter orb",
        "static orb",
        "rule of law",
        "drannith magistrate",
        "blood moon",
        "back to basics",
        "stasis",
        "tangle wire",
        "smokestack",
        "trinisphere",
        "opposition agent",
        "hokori, dust drinker",
    })),
    "soft": CatalogTier(weight=5, cards=frozenset({
        "thalia, guardian of thraben",
        "sphere of resistance",
        "thorn of amethyst",
        "lodestone golem",
        "aven mindcensor",
        "archon of emeria",
        "deafening silence",
        "hushbringer",
        "torpor orb",
        "cursed totem",
        "collector ouphe",
        "stony silence",
        "null rod",
        "grand abolisher",
    })),
}


# =========================================================================
# CARD ADVANTAGE ENGINES
# =========================================================================
CARD_ADVANTAGE_TIERS: Mapping[str, CatalogTier] = {
    "engine": CatalogTier(weight=10, cards=frozenset({
        "rhystic study",
        "mystic remora",
        "necropotence",
        "the one ring",
        "esper sentinel",
        "sylvan library",
        "phyrexian arena",
        "dark confidant",
        "bolas's citadel",
        "consecrated sphinx",
        "skullclamp",
        "ad nauseam",
    })),
    "burst": CatalogTier(weight=5, cards=frozenset({
        "harmonize",
        "night's whisper",
        "sign in blood",
        "read the bones",
        "fact or fiction",
        "brainstorm",
        "ponder",
        "preordain",
        "painful truths",
        "mulldrifter",
        "beast whisperer",
        "guardian project",
        "windfall",
        "wheel of fortune",
    })),
}


# =========================================================================
# PROTECTION STAPLES
# =========================================================================
PROTECTION_STAPLES: FrozenSet[str] = frozenset({
    "teferi's protection",
    "heroic intervention",
    "flawless maneuver",
    "deflecting swat",
    "fierce guardianship",
    "lightning greaves",
    "swiftfoot boots",
    "mother of runes",
    "giver of runes",
    "boros charm",
    "silence",
    "veil of summer",
    "tamiyo's safekeeping",
    "clever concealment",
})


# =========================================================================
# TWO-CARD COMBOS
# =========================================================================
TWO_CARD_COMBOS: Tuple[ComboDefinition, ...] = (
    ComboDefinition(("thassa's oracle", "demonic consultation"), 3,
                    "Exile the library, then win on the Oracle trigger"),
    ComboDefinition(("thassa's oracle", "tainted pact"), 4,
                    "Exile the library, then win on the Oracle trigger"),
    ComboDefinition(("laboratory maniac", "demonic consultation"), 4,
                    "Exile the library, then win on the next draw"),
    ComboDefinition(("isochron scepter", "dramatic reversal"), 4,
                    "Infinite mana with two or more mana rocks"),
    ComboDefinition(("splinter twin", "deceiver exarch"), 6,
                    "Infinite hasty tokens"),
    ComboDefinition(("splinter twin", "pestermite"), 6,
                    "Infinite hasty tokens"),
    ComboDefinition(("kiki-jiki", "zealous conscripts"), 10,
                    "Infinite hasty tokens"),
    ComboDefinition(("kiki-jiki", "pestermite"), 8,
                    "Infinite hasty tokens"),
    ComboDefinition(("heliod, sun-crowned", "walking ballista"), 5,
                    "Infinite damage"),
    ComboDefinition(("devoted druid", "vizier of remedies"), 4,
                    "Infinite green mana"),
    ComboDefinition(("dualcaster mage", "twinflame"), 5,
                    "Infinite hasty tokens"),
    ComboDefinition(("underworld breach", "lion's eye diamond"), 2,
                    "Loop the graveyard for mana and spells"),
    ComboDefinition(("basalt monolith", "rings of brighthearth"), 6,
                    "Infinite colorless mana"),
    ComboDefinition(("dockside extortionist", "temur sabertooth"), 6,
                    "Infinite treasure with enough opposing artifacts"),
    ComboDefinition(("food chain", "squee, the immortal"), 6,
                    "Infinite creature mana"),
    ComboDefinition(("worldgorger dragon", "animate dead"), 7,
                    "Infinite ETB and mana loop"),
    ComboDefinition(("painter's servant", "grindstone"), 3,
                    "Mill the entire library"),
    ComboDefinition(("bloom tender", "freed from the real"), 5,
                    "Infinite mana"),
    ComboDefinition(("exquisite blood", "sanguine bond"), 10,
                    "Infinite life drain"),
    ComboDefinition(("niv-mizzet, parun", "curiosity"), 7,
                    "Infinite damage and card draw"),
    ComboDefinition(("peregrine drake", "deadeye navigator"), 11,
                    "Infinite mana"),
    ComboDefinition(("mikaeus, the unhallowed", "triskelion"), 12,
                    "Infinite damage"),
)


# =========================================================================
# GAME CHANGER CLASSES
# Each class contributes at most GAME_CHANGER_CLASS_CAP entries.
# =========================================================================
GAME_CHANGER_CLASS_CAP = 3

GAME_CHANGER_CLASSES: Mapping[str, GameChangerClass] = {
    "compact_combo": GameChangerClass(
        reason="Enables a compact, low card-count combo win",
        cards=frozenset({
            "thassa's oracle",
            "demonic consultation",
            "tainted pact",
            "underworld breach",
            "isochron scepter",
            "dramatic reversal",
            "food chain",
            "dockside extortionist",
            "kiki-jiki, mirror breaker",
            "splinter twin",
            "walking ballista",
            "laboratory maniac",
        }),
    ),
    "finisher_bombs": GameChangerClass(
        reason="Ends the game the turn it resolves",
        cards=frozenset({
            "craterhoof behemoth",
            "expropriate",
            "insurrection",
            "triumph of the hordes",
            "torment of hailfire",
            "jin-gitaxias, core augur",
            "approach of the second sun",
            "finale of devastation",
            "sway of the stars",
        }),
    ),
    "inevitability_engines": GameChangerClass(
        reason="Generates overwhelming long-game advantage",
        cards=frozenset({
            "rhystic study",
            "smothering tithe",
            "the one ring",
            "necropotence",
            "bolas's citadel",
            "consecrated sphinx",
            "mystic remora",
            "sylvan library",
            "seedborn muse",
            "field of the dead",
        }),
    ),
    "massive_swing": GameChangerClass(
        reason="Swings the board or resources in a single turn",
        cards=frozenset({
            "cyclonic rift",
            "armageddon",
            "ravages of war",
            "jokulhaups",
            "obliterate",
            "vorinclex, voice of hunger",
            "farewell",
            "expropriate",
            "time warp",
        }),
    ),
}


# =========================================================================
# FEATURE -> CATALOG DISPATCH
# Features without a catalog table rely on heuristics only.
# =========================================================================
FEATURE_CATALOGS: Dict[FeatureKind, Mapping[str, CatalogTier]] = {
    FeatureKind.FAST_MANA: FAST_MANA_TIERS,
    FeatureKind.TUTORS: TUTOR_TIERS,
    FeatureKind.INTERACTION: INTERACTION_TIERS,
    FeatureKind.STAX: STAX_TIERS,
    FeatureKind.CARD_ADVANTAGE: CARD_ADVANTAGE_TIERS,
}


def tier_weight_for(card_name: str, tiers: Mapping[str, CatalogTier]) -> float:
    """Sum the weights of every tier listing the card (usually zero or one)."""
    canonical = canonicalize_name(card_name)
    return sum(tier.weight for tier in tiers.values() if canonical in tier.cards)


def tier_name_for(card_name: str, tiers: Mapping[str, CatalogTier]) -> Optional[str]:
    """Name of the first tier listing the card, or None."""
    canonical = canonicalize_name(card_name)
    for name, tier in tiers.items():
        if canonical in tier.cards:
            return name
    return None


def is_protection_staple(card_name: str) -> bool:
    """Check if a card is a premium protection staple."""
    return canonicalize_name(card_name) in PROTECTION_STAPLES


def find_combos(card_names: Iterable[str]) -> List[ComboDefinition]:
    """
    Return every catalog combo whose pieces all appear in the given names.

    A piece matches when it is a substring of any canonical card name, so
    partial names such as "kiki-jiki" match the full printed name.
    """
    canonical = [canonicalize_name(name) for name in card_names]
    found = []
    for combo in TWO_CARD_COMBOS:
        if all(any(piece in name for name in canonical) for piece in combo.cards):
            found.append(combo)
    return found


def has_compact_combo(card_names: Iterable[str], max_total_mv: int = 7) -> bool:
    """True when any matched combo costs max_total_mv or less in total."""
    return any(combo.total_mv <= max_total_mv for combo in find_combos(card_names))
