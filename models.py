"""
Data models for EDH power analysis.

Cards and decks are read-only inputs; everything else here is a value object
produced fresh by one analysis call.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import asdict, dataclass
from enum import Enum
from numbers import Real
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from utils import COLORS, is_basic_land


class InvalidCardError(ValueError):
    """Raised when a card record carries malformed field values."""


def _as_frozenset(value: Any, field_name: str, card_name: str) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        # "WU" style color strings; any other string is a single entry
        return frozenset(value) if field_name in ("colors", "color_identity") else frozenset({value})
    try:
        return frozenset(str(item) for item in value)
    except TypeError:
        raise InvalidCardError(
            f"{card_name}: {field_name} must be a collection of strings, got {type(value).__name__}"
        ) from None


@dataclass(frozen=True)
class Card:
    """A Magic: The Gathering card as supplied by the card catalog."""
    name: str
    mana_value: float = 0
    type_line: str = ""
    oracle_text: str = ""
    colors: FrozenSet[str] = frozenset()
    color_identity: FrozenSet[str] = frozenset()
    power: Optional[str] = None
    toughness: Optional[str] = None
    keywords: FrozenSet[str] = frozenset()
    rarity: str = "common"
    tags: FrozenSet[str] = frozenset()
    quantity: int = 1

    def __post_init__(self):
        """Validate field types and normalize set-valued fields."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidCardError(f"Card name must be a non-empty string, got {self.name!r}")

        mv = self.mana_value
        if isinstance(mv, bool) or not isinstance(mv, Real):
            raise InvalidCardError(
                f"{self.name}: mana_value must be a number, got {type(mv).__name__} {mv!r}"
            )
        if not math.isfinite(mv) or mv < 0:
            raise InvalidCardError(f"{self.name}: mana_value must be a finite non-negative number, got {mv!r}")

        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise InvalidCardError(f"{self.name}: quantity must be a positive integer, got {self.quantity!r}")

        if self.type_line is None:
            object.__setattr__(self, "type_line", "")
        if self.oracle_text is None:
            object.__setattr__(self, "oracle_text", "")
        for text_field in ("type_line", "oracle_text", "rarity"):
            if not isinstance(getattr(self, text_field), str):
                raise InvalidCardError(f"{self.name}: {text_field} must be a string")

        colors = _as_frozenset(self.colors, "colors", self.name)
        identity = _as_frozenset(self.color_identity, "color_identity", self.name)
        for label, values in (("colors", colors), ("color_identity", identity)):
            unknown = values - COLORS
            if unknown:
                raise InvalidCardError(
                    f"{self.name}: {label} contains unknown symbols {sorted(unknown)}"
                )
        object.__setattr__(self, "colors", colors)
        object.__setattr__(self, "color_identity", identity or colors)
        object.__setattr__(self, "keywords", _as_frozenset(self.keywords, "keywords", self.name))
        object.__setattr__(self, "tags", _as_frozenset(self.tags, "tags", self.name))

    @classmethod
    def from_scryfall(cls, data: Dict[str, Any], quantity: int = 1) -> "Card":
        """
        Build a card from a Scryfall card object.

        Double-faced cards join the face texts; colors fall back to the
        union of face colors when the top-level field is absent.
        """
        faces = data.get("card_faces") or []
        oracle_text = data.get("oracle_text")
        if oracle_text is None and faces:
            oracle_text = "\n//\n".join(face.get("oracle_text", "") for face in faces)

        colors = data.get("colors")
        if colors is None and faces:
            colors = {c for face in faces for c in face.get("colors", [])}

        power = data.get("power")
        toughness = data.get("toughness")
        if power is None and faces:
            power = faces[0].get("power")
            toughness = faces[0].get("toughness")

        return cls(
            name=data["name"],
            mana_value=data.get("cmc", 0),
            type_line=data.get("type_line", ""),
            oracle_text=oracle_text or "",
            colors=colors or (),
            color_identity=data.get("color_identity", ()),
            power=power,
            toughness=toughness,
            keywords=data.get("keywords", ()),
            rarity=data.get("rarity", "common"),
            quantity=quantity,
        )

    @property
    def text(self) -> str:
        """Lower-cased oracle text for pattern matching."""
        return self.oracle_text.lower()

    @property
    def is_land(self) -> bool:
        return "Land" in self.type_line

    @property
    def is_creature(self) -> bool:
        return "Creature" in self.type_line

    @property
    def is_artifact(self) -> bool:
        return "Artifact" in self.type_line

    @property
    def is_basic_land(self) -> bool:
        return is_basic_land(self.type_line)

    @property
    def enters_tapped(self) -> bool:
        """Lands that come into play tapped, by text or as guildgates."""
        text = self.text
        return ("enters the battlefield tapped" in text
                or "enters tapped" in text
                or "guildgate" in self.name.lower())

    @property
    def power_value(self) -> int:
        """Numeric power, 0 when absent or variable (e.g. "*")."""
        try:
            return int(self.power)
        except (TypeError, ValueError):
            return 0


@dataclass(frozen=True)
class Deck:
    """A decklist: the 99 (or 100), an optional commander and the format."""
    cards: Tuple[Card, ...]
    commander: Optional[Card] = None
    format: str = "commander"
    name: Optional[str] = None
    target_power: Optional[float] = None

    def __post_init__(self):
        cards = tuple(self.cards)
        for card in cards:
            if not isinstance(card, Card):
                raise InvalidCardError(f"Deck entries must be Card records, got {type(card).__name__}")
        if self.commander is not None and not isinstance(self.commander, Card):
            raise InvalidCardError("Commander must be a Card record")
        object.__setattr__(self, "cards", cards)

    @property
    def total_cards(self) -> int:
        """Total number of cards in the deck, commander excluded."""
        return sum(card.quantity for card in self.cards)

    @property
    def unique_cards(self) -> int:
        return len(self.cards)

    def expanded(self) -> List[Card]:
        """One entry per physical copy."""
        return expand_cards(self.cards)

    def all_cards(self) -> List[Card]:
        """Commander first (when present), then every physical copy."""
        cards = self.expanded()
        return [self.commander] + cards if self.commander else cards


def expand_cards(cards: Iterable[Card]) -> List[Card]:
    """Repeat each card by its quantity."""
    expanded: List[Card] = []
    for card in cards:
        expanded.extend([card] * card.quantity)
    return expanded


# ===== FEATURE OUTPUTS =====

@dataclass(frozen=True)
class TutorDetail:
    """A tutor found in the deck."""
    name: str
    tier: str  # catalog tier name or "heuristic"
    quality: float
    mana_value: float


@dataclass(frozen=True)
class GameChangerDetail:
    """A game-changing card found in the deck."""
    name: str
    category: str  # compact_combo, finisher_bombs, inevitability_engines, massive_swing
    reason: str


@dataclass(frozen=True)
class FeatureExtraction:
    """Eleven feature values in [0, 100] plus explainability details."""
    fast_mana_index: float = 0.0
    tutor_density: float = 0.0
    interaction_density: float = 0.0
    wincon_compactness: float = 0.0
    speed_proxy: float = 0.0
    resilience_index: float = 0.0
    mana_quality: float = 0.0
    consistency_metrics: float = 0.0
    synergy_score: float = 0.0
    stax_pressure: float = 0.0
    card_advantage_engines: float = 0.0
    tutors: Tuple[TutorDetail, ...] = ()
    game_changers: Tuple[GameChangerDetail, ...] = ()

    @property
    def tutor_quality(self) -> float:
        return sum(tutor.quality for tutor in self.tutors)

    @property
    def game_changer_count(self) -> int:
        return len(self.game_changers)

    def game_changer_class_counts(self) -> Dict[str, int]:
        return dict(Counter(gc.category for gc in self.game_changers))


# ===== SIMULATION OUTPUTS =====

@dataclass(frozen=True)
class PlayabilityMetrics:
    """Opening-hand statistics from the seeded simulation."""
    keepable7_pct: float
    t1_color_hit_pct: float
    t2_two_colors_hit_pct: float
    untapped_land_ratio: float
    avg_cmc: float
    rocks_dorks_count: int
    iterations: int = 0
    seed: int = 0


@dataclass(frozen=True)
class GoldfishMetrics:
    """Expected goldfish kill turn and combo presence."""
    exp_win_turn: float
    combo_presence: bool
    compact_combo_count: int


# ===== POWER OUTPUTS =====

SUBSCORE_NAMES: Tuple[str, ...] = (
    "speed",
    "interaction",
    "tutors",
    "resilience",
    "card_advantage",
    "mana",
    "consistency",
    "stax_pressure",
    "synergy",
)


@dataclass(frozen=True)
class Subscores:
    """The nine power subscores, each in [0, 100]."""
    speed: float = 0.0
    interaction: float = 0.0
    tutors: float = 0.0
    resilience: float = 0.0
    card_advantage: float = 0.0
    mana: float = 0.0
    consistency: float = 0.0
    stax_pressure: float = 0.0
    synergy: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in SUBSCORE_NAMES}


@dataclass(frozen=True)
class BandThresholds:
    """Upper power bounds (inclusive) of the casual, mid and high bands."""
    casual_max: float = 3.4
    mid_max: float = 6.6
    high_max: float = 8.5


@dataclass(frozen=True)
class LegalityResult:
    """Deck construction check. Issues are data, never exceptions."""
    ok: bool
    issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PowerFlags:
    """Informational flags; they do not change the power value."""
    no_tutors: bool
    no_game_changers: bool


@dataclass(frozen=True)
class PowerDiagnostics:
    """Tutor and game-changer details behind the flags."""
    tutor_count: int
    tutor_quality: float
    tutors: Tuple[TutorDetail, ...]
    game_changer_count: int
    game_changer_classes: Dict[str, int]
    game_changers: Tuple[GameChangerDetail, ...]


class CoachingOp(str, Enum):
    """Kinds of machine-actionable deck edits."""
    ADD_ROLE = "add_role"
    REDUCE_ROLE = "reduce_role"
    REDUCE_ETB_TAP = "reduce_etb_tap"
    INCREASE_ETB_TAP = "increase_etb_tap"
    IMPROVE_CURVE = "improve_curve"
    ADD_COMBO_LINE = "add_combo_line"
    REMOVE_COMBO_LINES = "remove_combo_lines"
    REPLACE_PREMIUM_INTERACTION = "replace_premium_interaction"


@dataclass(frozen=True)
class CoachingOperation:
    """A structured edit suggestion. Higher priority is applied first."""
    op: CoachingOp
    reason: str
    priority: int
    role: Optional[str] = None
    qty: Optional[int] = None
    constraint: Optional[str] = None
    target_pct: Optional[float] = None

    def __post_init__(self):
        if not 1 <= self.priority <= 10:
            raise ValueError(f"Coaching priority must be within 1..10, got {self.priority}")

    def to_dict(self) -> Dict[str, Any]:
        data = {"op": self.op.value, "reason": self.reason, "priority": self.priority}
        for key in ("role", "qty", "constraint", "target_pct"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class EDHPowerScore:
    """Terminal result of the power calculator."""
    power: float
    band: str  # casual | mid | high | cedh
    subscores: Subscores
    playability: PlayabilityMetrics
    goldfish: GoldfishMetrics
    legality: LegalityResult
    drivers: Tuple[str, ...]
    drags: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    coaching_operations: Tuple[CoachingOperation, ...]
    thresholds: BandThresholds
    flags: PowerFlags
    diagnostics: PowerDiagnostics
    catalog_version: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-safe representation."""
        data = asdict(self)
        data["subscores"] = self.subscores.as_dict()
        data["coaching_operations"] = [op.to_dict() for op in self.coaching_operations]
        return data
