"""Educational board packs (do / don't / try) keyed by pack id and vibe variant."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from models.taxonomy import BoardKind

DEFAULT_VARIANT = "default"


@dataclass(frozen=True)
class PackBoard:
    """Raw board as authored; labels may still carry a "Do:" style prefix."""

    kind: BoardKind
    image: str
    label: str


# pack id -> variant ("default" or a vibe value) -> boards
TipPacks = Dict[str, Dict[str, Tuple[PackBoard, ...]]]


def _bundle(pack_id: str, variant: str, labels: Tuple[str, str, str]) -> Tuple[PackBoard, ...]:
    kinds = (BoardKind.DO, BoardKind.DONT, BoardKind.TRY)
    return tuple(
        PackBoard(kind=kind, image=f"bundles/{pack_id}/{variant}/bundle_0{index}.webp", label=label)
        for index, (kind, label) in enumerate(zip(kinds, labels), start=1)
    )


def _boards(pack_id: str, variant: str, labels: Tuple[str, str, str]) -> Tuple[PackBoard, ...]:
    kinds = (BoardKind.DO, BoardKind.DONT, BoardKind.TRY)
    return tuple(
        PackBoard(kind=kind, image=f"boards/{pack_id}/{variant}/{kind.value}.webp", label=label)
        for kind, label in zip(kinds, labels)
    )


TIP_PACKS: TipPacks = {
    "A_outfit_clean_simple": {
        DEFAULT_VARIANT: _bundle(
            "A_outfit_clean_simple",
            DEFAULT_VARIANT,
            ("Everyday clean basics", "Neutral + structured", "Dress lane, still simple"),
        ),
        "minimal": _bundle(
            "A_outfit_clean_simple",
            "minimal",
            ("Tonal basics, nothing extra", "Neutral layers, clean lines", "One texture, one accent"),
        ),
    },
    "A_palette_neutral": {
        DEFAULT_VARIANT: _bundle(
            "A_palette_neutral",
            DEFAULT_VARIANT,
            ("Warm neutrals", "Black & white", "Neutral dress set"),
        ),
    },
    "A_texture_avoid_competing": {
        DEFAULT_VARIANT: _bundle(
            "A_texture_avoid_competing",
            DEFAULT_VARIANT,
            ("Keep textures in one lane", "Casual textures together", "Smooth + structured combo"),
        ),
    },
    "B_formality_tension": {
        DEFAULT_VARIANT: _boards(
            "B_formality_tension",
            DEFAULT_VARIANT,
            (
                "Do: keep dressiness consistent",
                "Avoid: mixing very formal + very casual",
                "Try: swap one piece to match the lane",
            ),
        ),
    },
    "B_style_tension": {
        DEFAULT_VARIANT: _boards(
            "B_style_tension",
            DEFAULT_VARIANT,
            (
                "Do: let one piece lead, keep the rest quiet",
                "Avoid: competing style signals",
                "Try: simplify the surrounding pieces",
            ),
        ),
        "street": _boards(
            "B_style_tension",
            "street",
            (
                "Do: one street statement, clean basics around it",
                "Avoid: logos fighting logos",
                "Try: swap the loud sneaker for a plain one",
            ),
        ),
    },
    "B_color_tension": {
        DEFAULT_VARIANT: _boards(
            "B_color_tension",
            DEFAULT_VARIANT,
            (
                "Do: one focal color + neutrals",
                "Avoid: multiple competing colors",
                "Try: tonal outfit with one accent",
            ),
        ),
    },
    "B_usage_mismatch": {
        DEFAULT_VARIANT: _boards(
            "B_usage_mismatch",
            DEFAULT_VARIANT,
            (
                "Do: dress for one clear context",
                "Avoid: mixing work + workout cues",
                "Try: swap one piece to match the purpose",
            ),
        ),
    },
    "B_shoes_confidence_dampen": {
        DEFAULT_VARIANT: _boards(
            "B_shoes_confidence_dampen",
            DEFAULT_VARIANT,
            (
                "Do: simple shoe shape",
                "Avoid: shoes that fight the outfit",
                "Try: same outfit, swap to minimal shoes",
            ),
        ),
    },
    "B_missing_key_signal": {
        DEFAULT_VARIANT: _boards(
            "B_missing_key_signal",
            DEFAULT_VARIANT,
            (
                "Do: keep the rest versatile",
                "Avoid: too many statement pieces",
                "Try: one standout, everything else simple",
            ),
        ),
    },
}


__all__ = ["DEFAULT_VARIANT", "PackBoard", "TIP_PACKS", "TipPacks"]
