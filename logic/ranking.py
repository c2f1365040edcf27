"""Dual-signal vibe ranking for library items.

Scanned-item vibes are the primary signal and the user's own vibes the
secondary one. The two lists are scored separately and never merged, so a
strong match with the scanned piece always outranks a match with the user's
general taste. Ties fall back to vibe priority, then to items tagged as
suiting every style, and finally to library order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from models.library_item import LibraryItem
from models.taxonomy import VIBE_PRIORITY, VIBE_RANK, Vibe
from models.vibes import normalize

NO_MATCH_INDEX = len(VIBE_PRIORITY)


@dataclass(frozen=True)
class VibeScore:
    primary: int
    secondary: int
    lead_index: int
    works_for_everyone: bool = False

    def sort_key(self) -> tuple:
        return (-self.primary, -self.secondary, self.lead_index, not self.works_for_everyone)


def score_item(item: LibraryItem, scanned_vibes: Sequence[Vibe], user_vibes: Sequence[Vibe]) -> VibeScore:
    """Score one item against already-normalized scanned and user vibes."""

    item_vibes = set(item.vibes)
    scanned = item_vibes.intersection(scanned_vibes)
    preferred = item_vibes.intersection(user_vibes)
    matched = scanned | preferred
    lead_index = min((VIBE_RANK[vibe] for vibe in matched), default=NO_MATCH_INDEX)
    return VibeScore(
        primary=len(scanned),
        secondary=len(preferred),
        lead_index=lead_index,
        works_for_everyone=item.works_for_everyone,
    )


def rank(
    items: Iterable[LibraryItem],
    scanned_vibes: Optional[Iterable[object]],
    user_vibes: Optional[Iterable[object]],
) -> List[LibraryItem]:
    """Order items by scanned overlap, then user overlap, then vibe priority.

    The sort is stable, so equally scored items keep their library order and
    empty vibe signals return the input order unchanged.
    """

    ordered = list(items)
    scanned = normalize(scanned_vibes)
    preferred = normalize(user_vibes)
    if not scanned and not preferred:
        return ordered
    return sorted(ordered, key=lambda item: score_item(item, scanned, preferred).sort_key())


__all__ = ["NO_MATCH_INDEX", "VibeScore", "rank", "score_item"]
