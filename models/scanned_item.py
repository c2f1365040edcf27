"""Inputs supplied by collaborators: the analysed scan and the user's preferences."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.taxonomy import Category, Vibe, parse_category
from models.vibes import normalize


@dataclass
class ScannedItem:
    """Attributes returned by image analysis for one scanned garment."""

    category: Optional[Category] = None
    style_tags: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.category = parse_category(self.category)

    @property
    def vibes(self) -> List[Vibe]:
        return normalize(self.style_tags)


@dataclass
class UserPreferences:
    style_vibes: List[str] = field(default_factory=list)

    @property
    def vibes(self) -> List[Vibe]:
        return normalize(self.style_vibes)


__all__ = ["ScannedItem", "UserPreferences"]
