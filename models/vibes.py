"""Vibe normalisation and display formatting."""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from models.taxonomy import VIBE_LABELS, VIBE_RANK, Vibe, parse_vibe

VIBE_SEPARATOR = " • "
DEFAULT_MAX_SHOWN = 2


def normalize(vibes: Optional[Iterable[object]]) -> List[Vibe]:
    """Canonicalise raw style tags into a deduplicated, priority-ordered vibe list.

    Unknown tokens, the ``"default"`` sentinel, non-string entries and a
    missing list are all tolerated and simply contribute nothing.
    """

    if vibes is None or isinstance(vibes, (str, bytes)):
        vibes = [vibes] if isinstance(vibes, str) else []
    seen: Set[Vibe] = set()
    for raw in vibes:
        vibe = parse_vibe(raw)
        if vibe is not None:
            seen.add(vibe)
    return sorted(seen, key=VIBE_RANK.__getitem__)


def vibe_label(vibe: object) -> str:
    parsed = parse_vibe(vibe)
    if parsed is None:
        return str(vibe)
    return VIBE_LABELS[parsed]


def format_vibes(vibes: Optional[Iterable[object]], max_shown: int = DEFAULT_MAX_SHOWN) -> str:
    """Render vibes as ``"Office • Minimal +1"``; an empty list renders as ``""``."""

    labels = [vibe_label(vibe) for vibe in (vibes or [])]
    if not labels:
        return ""
    shown_count = max(0, max_shown)
    shown = labels[:shown_count]
    extra = len(labels) - len(shown)
    text = VIBE_SEPARATOR.join(shown)
    if extra > 0:
        suffix = f"+{extra}"
        return f"{text} {suffix}" if text else suffix
    return text


__all__ = ["DEFAULT_MAX_SHOWN", "VIBE_SEPARATOR", "format_vibes", "normalize", "vibe_label"]
