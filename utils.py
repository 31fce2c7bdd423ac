"""
Shared utility functions for the EDH power analyzer.
Common operations used across multiple modules.
"""
from __future__ import annotations

import re
import unicodedata
from typing import FrozenSet


COLORS: FrozenSet[str] = frozenset({"W", "U", "B", "R", "G"})

BASIC_LAND_NAMES: FrozenSet[str] = frozenset({
    "plains", "island", "swamp", "mountain", "forest",
    "wastes",
    "snow-covered plains", "snow-covered island", "snow-covered swamp",
    "snow-covered mountain", "snow-covered forest",
})

# Basic land subtype -> color it produces
BASIC_LAND_COLORS = {
    "plains": "W",
    "island": "U",
    "swamp": "B",
    "mountain": "R",
    "forest": "G",
}


def canonicalize_name(name: str) -> str:
    """
    Canonicalize card names for consistent matching.

    Transforms:
    - Normalizes Unicode (NFKD)
    - Removes combining characters (accents)
    - Case-folds to lowercase
    - Normalizes quotes/apostrophes
    - Keeps only alphanumeric, spaces, commas, hyphens, apostrophes
    - Collapses whitespace

    Args:
        name: Card name to canonicalize

    Returns:
        Canonicalized string for comparison

    Examples:
        >>> canonicalize_name("Bolas's Citadel")
        "bolas's citadel"
        >>> canonicalize_name("Lim-Dûl's Vault")
        "lim-dul's vault"
    """
    if not name:
        return ""

    # Normalize Unicode
    name = unicodedata.normalize("NFKD", name)

    # Remove combining characters (accents)
    name = "".join(ch for ch in name if not unicodedata.combining(ch))

    name = name.casefold()

    # Curly apostrophes to plain
    name = name.replace("’", "'").replace("‘", "'")

    # Keep only safe characters: alphanumeric, spaces, commas, hyphens, apostrophes
    name = re.sub(r"[^a-z0-9 ,'-]+", " ", name)

    name = re.sub(r"\s+", " ", name).strip()

    return name


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def is_basic_land_name(name: str) -> bool:
    """Check if a card name is one of the basic lands (exempt from singleton)."""
    return canonicalize_name(name) in BASIC_LAND_NAMES


def is_basic_land(type_line: str) -> bool:
    """
    Check if a card is a basic land.

    Args:
        type_line: Card type line

    Returns:
        True if basic land
    """
    return "Basic Land" in type_line if type_line else False


def get_primary_type(type_line: str) -> str:
    """
    Extract the primary card type from a type line.

    Creatures win over every other type so that artifact creatures count as
    creatures in type distributions.

    Args:
        type_line: Full type line like "Legendary Creature — Human Noble"

    Returns:
        Primary type like "Creature", or "Other"
    """
    lowered = (type_line or "").lower()
    for primary in ("Creature", "Instant", "Sorcery", "Artifact",
                    "Enchantment", "Planeswalker", "Land"):
        if primary.lower() in lowered:
            return primary
    return "Other"


def land_colors(type_line: str, oracle_text: str) -> FrozenSet[str]:
    """
    Colors a land can produce, judged from basic land subtypes and text.

    "Any color" lands produce all five colors.
    """
    text = (oracle_text or "").lower()
    if "any color" in text:
        return COLORS
    lowered = (type_line or "").lower()
    produced = {color for subtype, color in BASIC_LAND_COLORS.items() if subtype in lowered}
    return frozenset(produced)
