"""Resolved tip-sheet content: a suggestions grid or an educational board set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from models.library_item import LibraryItem
from models.taxonomy import BoardKind, Category, FilterKey

SUGGESTIONS_LABEL = "Items that would work"


@dataclass(frozen=True)
class Board:
    kind: BoardKind
    image: str
    label: str


@dataclass(frozen=True)
class SuggestionsMeta:
    """Which recipe constraints shaped the grid."""

    relaxed_keys: Tuple[FilterKey, ...] = ()
    locked_keys: Tuple[FilterKey, ...] = ()
    was_relaxed: bool = False
    category_empty: bool = False


@dataclass(frozen=True)
class Suggestions:
    kind: ClassVar[str] = "suggestions"

    topic: str
    category: Category
    items: Tuple[LibraryItem, ...]
    more_items: Tuple[LibraryItem, ...]
    can_show_more: bool
    meta: SuggestionsMeta
    label: str = SUGGESTIONS_LABEL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "topic": self.topic,
            "category": self.category.value,
            "label": self.label,
            "items": [item.to_dict() for item in self.items],
            "more_items": [item.to_dict() for item in self.more_items],
            "can_show_more": self.can_show_more,
            "meta": {
                "relaxed_keys": [key.value for key in self.meta.relaxed_keys],
                "locked_keys": [key.value for key in self.meta.locked_keys],
                "was_relaxed": self.meta.was_relaxed,
                "category_empty": self.meta.category_empty,
            },
        }


@dataclass(frozen=True)
class Educational:
    kind: ClassVar[str] = "educational"

    topic: str
    boards: Tuple[Board, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "topic": self.topic,
            "boards": [
                {"kind": board.kind.value, "image": board.image, "label": board.label}
                for board in self.boards
            ],
        }


@dataclass(frozen=True)
class ContentUnresolved:
    """Nothing to show for this request; callers dismiss rather than fail."""

    kind: ClassVar[str] = "unresolved"

    reason: str
    topic: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "reason": self.reason, "topic": self.topic}


ResolvedContent = Union[Suggestions, Educational]

UNKNOWN_TOPIC = "unknown_topic"
MISSING_CATEGORY = "missing_category"
UNKNOWN_CATEGORY = "unknown_category"
MISSING_PACK = "missing_pack"


__all__ = [
    "Board",
    "ContentUnresolved",
    "Educational",
    "MISSING_CATEGORY",
    "MISSING_PACK",
    "ResolvedContent",
    "SUGGESTIONS_LABEL",
    "Suggestions",
    "SuggestionsMeta",
    "UNKNOWN_CATEGORY",
    "UNKNOWN_TOPIC",
]
