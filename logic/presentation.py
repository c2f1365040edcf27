"""Copy and state rules for the suggestions section of a tip sheet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from models.content import Suggestions
from models.library_item import LibraryItem
from models.taxonomy import CATEGORY_LABELS, Category

LOADING = "loading"
ERROR = "error"
EMPTY_LIBRARY = "empty_library"
EMPTY_CATEGORY = "empty_category"
EMPTY_RECIPE = "empty_recipe"
GRID = "grid"

RELAXED_NOTE = "Showing close options."
SHOW_MORE_NOTE = "These may not be exact matches."


@dataclass(frozen=True)
class SectionState:
    """What the suggestions section should render right now."""

    mode: str
    title: str = ""
    message: str = ""
    heading: str = ""
    context_note: Optional[str] = None
    show_retry: bool = False
    show_more_button: bool = False
    show_add_cta: bool = False
    items: Tuple[LibraryItem, ...] = ()


def suggestions_heading(
    wardrobe_count: int,
    category: Optional[Category],
    item_count: int,
    show_more: bool = False,
) -> str:
    """Grid heading: first-time users see examples, others see suggestions.

    In show-more mode ``item_count`` is the whole ranked category, which
    replaces the matched grid and so includes the items shown before.
    """

    if show_more:
        return f"More items ({item_count})"
    if wardrobe_count == 0:
        return f"Examples to add ({item_count})"
    label = CATEGORY_LABELS.get(category, "items") if category is not None else "items"
    return f"Suggested {label} ({item_count})"


def should_show_add_cta(wardrobe_count: int, has_add_action: bool = True) -> bool:
    return wardrobe_count == 0 and has_add_action


def context_note(content: Suggestions, show_more: bool = False) -> Optional[str]:
    if show_more:
        return SHOW_MORE_NOTE
    if content.meta.was_relaxed:
        return RELAXED_NOTE
    return None


def section_state(
    content: Suggestions,
    *,
    wardrobe_count: int,
    loading: bool = False,
    error_kind: str = "none",
    show_more: bool = False,
    has_add_action: bool = True,
) -> SectionState:
    """Pick the section state. Retry and "show more" are separate paths.

    "Show more" swaps the grid for ``content.more_items``, the full ranked
    category (matched items included), rather than appending to it.
    """

    if loading:
        return SectionState(mode=LOADING)
    if error_kind == "fetch_failed":
        return SectionState(
            mode=ERROR,
            title="Can't load suggestions right now",
            message="Check your connection and try again.",
            show_retry=True,
        )
    if error_kind == "empty":
        return SectionState(mode=EMPTY_LIBRARY, title="No suggestions yet", message="We're adding items regularly.")
    if content.meta.category_empty:
        label = CATEGORY_LABELS.get(content.category, "items")
        return SectionState(
            mode=EMPTY_CATEGORY,
            title=f"No {label} in the library yet",
            message="We're adding items regularly.",
        )

    display_items = content.more_items if show_more else content.items
    if not display_items:
        return SectionState(
            mode=EMPTY_RECIPE,
            title="No exact matches yet.",
            message="Want to see more items from this category?",
            show_more_button=content.can_show_more,
        )

    return SectionState(
        mode=GRID,
        heading=suggestions_heading(wardrobe_count, content.category, len(display_items), show_more),
        context_note=context_note(content, show_more),
        show_add_cta=should_show_add_cta(wardrobe_count, has_add_action),
        items=tuple(display_items),
    )


__all__ = [
    "EMPTY_CATEGORY",
    "EMPTY_LIBRARY",
    "EMPTY_RECIPE",
    "ERROR",
    "GRID",
    "LOADING",
    "SectionState",
    "context_note",
    "section_state",
    "should_show_add_cta",
    "suggestions_heading",
]
