"""Educational board resolution for do / don't / try tip packs."""

from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional, Tuple

from models.content import Board
from models.taxonomy import BOARD_KIND_ORDER, Vibe, parse_vibe
from models.tip_packs import DEFAULT_VARIANT, TIP_PACKS, PackBoard

_LABEL_PREFIX = re.compile(r"^\s*(do|avoid|try)\s*:\s*", re.IGNORECASE)


def clean_board_label(label: str) -> str:
    """Strip a leading "Do:", "Avoid:" or "Try:" and capitalise the first letter."""

    stripped = _LABEL_PREFIX.sub("", label or "").strip()
    if not stripped:
        return ""
    return stripped[0].upper() + stripped[1:]


def _join_url(base_url: str, path: str) -> str:
    if not base_url or path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def order_boards(boards: Iterable[Board]) -> List[Board]:
    """Stable sort so ``do`` leads and ``try`` boards close the list."""

    return sorted(boards, key=lambda board: BOARD_KIND_ORDER[board.kind])


class BoardResolver:
    """Resolves the boards of a tip pack for the requested vibe variant."""

    def __init__(self, packs: Mapping[str, Mapping[str, Tuple[PackBoard, ...]]] | None = None, base_url: str = "") -> None:
        self.packs = TIP_PACKS if packs is None else packs
        self.base_url = base_url

    def variant_for(self, pack_id: str, vibe: object = None) -> Optional[str]:
        variants = self.packs.get(pack_id)
        if not variants:
            return None
        parsed: Optional[Vibe] = parse_vibe(vibe)
        if parsed is not None and variants.get(parsed.value):
            return parsed.value
        if variants.get(DEFAULT_VARIANT):
            return DEFAULT_VARIANT
        return None

    def resolve(self, pack_id: str, vibe: object = None) -> List[Board]:
        """Return ordered, cleaned boards, or an empty list when the pack is missing."""

        variant = self.variant_for(pack_id, vibe)
        if variant is None:
            return []
        boards = [
            Board(kind=raw.kind, image=_join_url(self.base_url, raw.image), label=clean_board_label(raw.label))
            for raw in self.packs[pack_id][variant]
        ]
        return order_boards(boards)


__all__ = ["BoardResolver", "clean_board_label", "order_boards"]
