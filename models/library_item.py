"""Catalogue item model shared by the library source and the resolvers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence, Tuple

from models.taxonomy import NO_OP_VIBE, Category, FilterKey, Vibe, parse_filter_key, validate_category
from models.vibes import normalize

DEFAULT_RANK = 9999


@dataclass(frozen=True)
class LibraryItem:
    """Immutable library entry. Missing attributes mean "unknown".

    Items tagged with the ``"default"`` vibe suit any style; the tag is kept
    as ``works_for_everyone`` because normalised vibe lists drop it.
    """

    id: str
    label: str
    category: Category
    image: str = ""
    rank: int = DEFAULT_RANK
    vibes: Tuple[Vibe, ...] = ()
    attributes: Dict[FilterKey, str] = field(default_factory=dict, hash=False)
    active: bool = True
    works_for_everyone: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Library item id is required")
        object.__setattr__(self, "category", validate_category(self.category))
        if any(isinstance(tag, str) and tag.strip().lower() == NO_OP_VIBE for tag in self.vibes):
            object.__setattr__(self, "works_for_everyone", True)
        object.__setattr__(self, "vibes", tuple(normalize(self.vibes)))

    def attribute(self, key: FilterKey) -> Optional[str]:
        return self.attributes.get(key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "category": self.category.value,
            "image": self.image,
            "rank": self.rank,
            "vibes": [vibe.value for vibe in self.vibes],
            "works_for_everyone": self.works_for_everyone,
            "attributes": {key.value: value for key, value in self.attributes.items()},
        }


class CatalogView(Protocol):
    """Anything that can list library items for a category."""

    def get_by_category(self, category: Category) -> Sequence[LibraryItem]:
        ...


def from_raw_metadata(payload: Mapping[str, Any]) -> LibraryItem:
    """Build a LibraryItem from a flat catalogue row.

    Attribute columns may use snake or camel case (``outerwear_weight`` or
    ``outerwearWeight``); empty values are treated as unknown.
    """

    attributes: Dict[FilterKey, str] = {}
    for raw_key, raw_value in payload.items():
        key = parse_filter_key(raw_key)
        if key is None or raw_value in (None, ""):
            continue
        attributes[key] = str(raw_value).strip().lower()

    rank = payload.get("rank")
    return LibraryItem(
        id=str(payload.get("id") or ""),
        label=str(payload.get("label") or ""),
        category=payload.get("category"),  # type: ignore[arg-type]
        image=str(payload.get("image_url") or payload.get("image") or ""),
        rank=int(rank) if rank is not None else DEFAULT_RANK,
        vibes=tuple(payload.get("vibes") or ()),
        attributes=attributes,
        active=bool(payload.get("active", True)),
    )


__all__ = ["CatalogView", "DEFAULT_RANK", "LibraryItem", "from_raw_metadata"]
