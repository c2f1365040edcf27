"""Canonical taxonomy definitions for the suggestion engine.

This module centralises the closed vocabularies used across the engine:
vibes, library categories, recipe filter keys, board kinds and topic modes.
Raw strings coming from the remote library, scanned items or user settings are
parsed here once, so downstream code only ever handles the enumerations.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_")


class Vibe(str, Enum):
    OFFICE = "office"
    MINIMAL = "minimal"
    STREET = "street"
    FEMININE = "feminine"
    SPORTY = "sporty"
    CASUAL = "casual"


# Display and tie-break order for every vibe list.
VIBE_PRIORITY: List[Vibe] = [
    Vibe.OFFICE,
    Vibe.MINIMAL,
    Vibe.STREET,
    Vibe.FEMININE,
    Vibe.SPORTY,
    Vibe.CASUAL,
]
VIBE_RANK: Dict[Vibe, int] = {vibe: index for index, vibe in enumerate(VIBE_PRIORITY)}
VIBE_LABELS: Dict[Vibe, str] = {vibe: vibe.value.capitalize() for vibe in VIBE_PRIORITY}

# Tag meaning "no particular vibe"; it is never a member of a normalized list.
NO_OP_VIBE = "default"


class Category(str, Enum):
    TOPS = "tops"
    BOTTOMS = "bottoms"
    OUTERWEAR = "outerwear"
    SHOES = "shoes"
    BAGS = "bags"
    ACCESSORIES = "accessories"
    DRESSES = "dresses"
    SKIRTS = "skirts"


CATEGORY_LABELS: Dict[Category, str] = {
    Category.TOPS: "tops",
    Category.BOTTOMS: "bottoms",
    Category.OUTERWEAR: "outerwear",
    Category.SHOES: "shoes",
    Category.BAGS: "bags",
    Category.ACCESSORIES: "accessories",
    Category.DRESSES: "dresses",
    Category.SKIRTS: "skirts",
}


class FilterKey(str, Enum):
    """Library attributes a recipe may constrain, in canonical order."""

    TONE = "tone"
    STRUCTURE = "structure"
    FORMALITY = "formality"
    VOLUME = "volume"
    SHAPE = "shape"
    LENGTH = "length"
    TIER = "tier"
    OUTERWEAR_WEIGHT = "outerwear_weight"


FILTER_KEY_ORDER: Dict[FilterKey, int] = {key: index for index, key in enumerate(FilterKey)}

# Known attribute values, used to validate recipes. Remote items may carry
# values outside these sets; they simply never match a constraint.
FILTER_VALUES: Dict[FilterKey, List[str]] = {
    FilterKey.TONE: ["light", "neutral", "dark"],
    FilterKey.STRUCTURE: ["soft", "structured"],
    FilterKey.FORMALITY: ["casual", "smart-casual", "formal"],
    FilterKey.VOLUME: ["fitted", "regular", "oversized"],
    FilterKey.SHAPE: ["straight", "tapered", "wide", "low_profile", "heeled", "chunky"],
    FilterKey.LENGTH: ["cropped", "regular", "midi", "maxi", "long"],
    FilterKey.TIER: ["core", "staple", "style", "statement"],
    FilterKey.OUTERWEAR_WEIGHT: ["light", "medium", "heavy"],
}

_FILTER_KEY_ALIASES = {
    "outerwearweight": FilterKey.OUTERWEAR_WEIGHT,
    "outerwear-weight": FilterKey.OUTERWEAR_WEIGHT,
}


class BoardKind(str, Enum):
    DO = "do"
    DONT = "dont"
    TRY = "try"


BOARD_KIND_ORDER: Dict[BoardKind, int] = {BoardKind.DO: 0, BoardKind.DONT: 1, BoardKind.TRY: 2}


class TopicMode(str, Enum):
    SUGGESTIONS = "suggestions"
    EDUCATIONAL = "educational"


def parse_vibe(value: object) -> Optional[Vibe]:
    """Return the Vibe for a raw tag, or None for unknown and sentinel tags."""

    if isinstance(value, Vibe):
        return value
    if not isinstance(value, str):
        return None
    key = _normalize_key(value)
    if not key or key == NO_OP_VIBE:
        return None
    try:
        return Vibe(key)
    except ValueError:
        return None


def parse_category(value: object) -> Optional[Category]:
    """Return the Category for a raw label, or None if it is not in the taxonomy."""

    if isinstance(value, Category):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Category(_normalize_key(value))
    except ValueError:
        return None


def validate_category(value: object) -> Category:
    """Parse a category, raising ``ValueError`` when it is unknown."""

    category = parse_category(value)
    if category is None:
        raise ValueError(f"Unknown category '{value}'")
    return category


def parse_filter_key(value: object) -> Optional[FilterKey]:
    """Return the FilterKey for a raw attribute name (snake or camel case)."""

    if isinstance(value, FilterKey):
        return value
    if not isinstance(value, str):
        return None
    key = _normalize_key(value)
    if key in _FILTER_KEY_ALIASES:
        return _FILTER_KEY_ALIASES[key]
    try:
        return FilterKey(key)
    except ValueError:
        return None


__all__ = [
    "BOARD_KIND_ORDER",
    "BoardKind",
    "CATEGORY_LABELS",
    "Category",
    "FILTER_KEY_ORDER",
    "FILTER_VALUES",
    "FilterKey",
    "NO_OP_VIBE",
    "TopicMode",
    "VIBE_LABELS",
    "VIBE_PRIORITY",
    "VIBE_RANK",
    "Vibe",
    "parse_category",
    "parse_filter_key",
    "parse_vibe",
    "validate_category",
]
