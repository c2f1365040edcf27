"""Suggestions section copy and state selection."""

from logic.presentation import (
    EMPTY_CATEGORY,
    EMPTY_LIBRARY,
    EMPTY_RECIPE,
    ERROR,
    GRID,
    LOADING,
    RELAXED_NOTE,
    SHOW_MORE_NOTE,
    section_state,
    should_show_add_cta,
    suggestions_heading,
)
from models.content import Suggestions, SuggestionsMeta
from models.library_item import LibraryItem
from models.taxonomy import Category, FilterKey


def _suggestions(item_count: int = 2, more_count: int = 4, **meta) -> Suggestions:
    pool = tuple(
        LibraryItem(id=f"shoe-{index}", label=f"Shoe {index}", category=Category.SHOES) for index in range(more_count)
    )
    items = pool[:item_count]
    return Suggestions(
        topic="TOPS__SHOES_NEUTRAL",
        category=Category.SHOES,
        items=items,
        more_items=pool,
        can_show_more=len(pool) > len(items),
        meta=SuggestionsMeta(**meta),
    )


def test_first_time_users_see_examples_and_add_cta() -> None:
    state = section_state(_suggestions(), wardrobe_count=0)

    assert state.mode == GRID
    assert state.heading == "Examples to add (2)"
    assert state.show_add_cta is True


def test_returning_users_see_category_heading_without_cta() -> None:
    state = section_state(_suggestions(), wardrobe_count=3)

    assert state.heading == "Suggested shoes (2)"
    assert state.show_add_cta is False


def test_add_cta_needs_an_add_action() -> None:
    assert should_show_add_cta(0, has_add_action=False) is False
    assert section_state(_suggestions(), wardrobe_count=0, has_add_action=False).show_add_cta is False


def test_show_more_uses_broader_pool_and_note() -> None:
    state = section_state(_suggestions(), wardrobe_count=3, show_more=True)

    assert state.heading == "More items (4)"
    assert len(state.items) == 4
    assert state.context_note == SHOW_MORE_NOTE


def test_show_more_replaces_grid_and_counts_every_displayed_item() -> None:
    content = _suggestions(item_count=2, more_count=3)

    grid = section_state(content, wardrobe_count=3)
    more = section_state(content, wardrobe_count=3, show_more=True)

    assert [item.id for item in more.items[: len(grid.items)]] == [item.id for item in grid.items]
    assert more.heading == f"More items ({len(more.items)})"
    assert more.heading == "More items (3)"


def test_relaxed_results_get_context_note() -> None:
    state = section_state(_suggestions(relaxed_keys=(FilterKey.TONE,), was_relaxed=True), wardrobe_count=1)

    assert state.context_note == RELAXED_NOTE


def test_loading_and_error_states_take_precedence() -> None:
    content = _suggestions()

    assert section_state(content, wardrobe_count=1, loading=True).mode == LOADING
    error = section_state(content, wardrobe_count=1, error_kind="fetch_failed")
    assert error.mode == ERROR
    assert error.show_retry is True
    assert error.show_more_button is False
    assert section_state(content, wardrobe_count=1, error_kind="empty").mode == EMPTY_LIBRARY


def test_empty_category_and_empty_recipe_states() -> None:
    empty_category = _suggestions(item_count=0, more_count=0, category_empty=True)
    empty_recipe = _suggestions(item_count=0, more_count=3)

    category_state = section_state(empty_category, wardrobe_count=2)
    recipe_state = section_state(empty_recipe, wardrobe_count=2)

    assert category_state.mode == EMPTY_CATEGORY
    assert category_state.title == "No shoes in the library yet"
    assert recipe_state.mode == EMPTY_RECIPE
    assert recipe_state.show_more_button is True
    assert recipe_state.show_retry is False


def test_heading_without_category_uses_generic_label() -> None:
    assert suggestions_heading(2, None, 5) == "Suggested items (5)"
