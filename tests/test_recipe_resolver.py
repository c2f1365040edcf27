"""Recipe filtering, relaxation and pool construction."""

from logic.recipe_resolver import RecipeResolver, matches_constraints, relaxation_sequence
from models.library_item import LibraryItem
from models.recipes import Recipe
from models.scanned_item import ScannedItem
from models.taxonomy import Category, FilterKey
from tools.library_source import LibrarySnapshot

T = FilterKey


def _item(item_id: str, rank: int, vibes=(), category: Category = Category.BOTTOMS, **attributes) -> LibraryItem:
    return LibraryItem(
        id=item_id,
        label=item_id,
        category=category,
        rank=rank,
        vibes=tuple(vibes),
        attributes={FilterKey(key): value for key, value in attributes.items()},
    )


def _bottoms_pool():
    return [
        _item("b1", 1, tone="dark", structure="structured", shape="straight"),
        _item("b2", 2, tone="dark", structure="structured", shape="wide"),
        _item("b3", 3, tone="light", structure="structured", shape="straight"),
        _item("b4", 4, tone="light", structure="soft", shape="tapered"),
        _item("b5", 5, tone="neutral", structure="structured", shape="wide"),
        _item("b6", 6, tone="light", structure="soft", shape="wide"),
    ]


def _resolver(recipe: Recipe, items, limit=None) -> RecipeResolver:
    return RecipeResolver(LibrarySnapshot.from_items(items), recipes={"TOPIC": recipe}, limit=limit)


def test_exact_matches_are_not_relaxed() -> None:
    recipe = Recipe(
        target_category=Category.BOTTOMS,
        required={T.TONE: "dark", T.STRUCTURE: "structured"},
        optional={T.SHAPE: ["straight", "wide"]},
        relax_order=(T.SHAPE,),
    )

    resolution = _resolver(recipe, _bottoms_pool()).resolve("TOPIC", Category.BOTTOMS)

    assert [item.id for item in resolution.items] == ["b1", "b2"]
    assert resolution.was_relaxed is False
    assert resolution.relaxed_keys == ()
    assert len(resolution.more_items) == 6
    assert resolution.can_show_more is True


def test_relaxing_one_key_reports_exactly_that_key() -> None:
    recipe = Recipe(
        target_category=Category.BOTTOMS,
        required={T.STRUCTURE: "soft", T.TONE: "dark"},
        relax_order=(T.TONE,),
    )
    pool = _bottoms_pool() + [_item("b7", 7, tone="neutral", structure="soft")]

    resolution = _resolver(recipe, pool).resolve("TOPIC", Category.BOTTOMS)

    assert [item.id for item in resolution.items] == ["b4", "b6", "b7"]
    assert resolution.was_relaxed is True
    assert resolution.relaxed_keys == (T.TONE,)
    assert resolution.locked_keys == (T.STRUCTURE,)


def test_optional_constraints_relax_in_configured_order() -> None:
    recipe = Recipe(
        target_category=Category.BOTTOMS,
        required={T.STRUCTURE: "structured"},
        optional={T.SHAPE: "tapered", T.TONE: "light"},
        relax_order=(T.SHAPE, T.TONE),
    )

    resolution = _resolver(recipe, _bottoms_pool()).resolve("TOPIC", Category.BOTTOMS)

    assert resolution.relaxed_keys == (T.SHAPE,)
    assert [item.id for item in resolution.items] == ["b3"]
    assert resolution.debug["relax_steps"] == [("shape", 1)]


def test_required_keys_outside_relax_order_are_never_dropped() -> None:
    recipe = Recipe(target_category=Category.BOTTOMS, required={T.TONE: "neutral", T.STRUCTURE: "soft"})

    resolution = _resolver(recipe, _bottoms_pool()).resolve("TOPIC", Category.BOTTOMS)

    assert resolution.items == ()
    assert resolution.relaxed_keys == ()
    assert resolution.can_show_more is True
    assert resolution.category_empty is False


def test_missing_attributes_do_not_exclude_items() -> None:
    unknown = _item("unknown", 1)

    assert matches_constraints(unknown, {T.TONE: ("dark",)})
    assert not matches_constraints(_item("light", 2, tone="light"), {T.TONE: ("dark",)})


def test_results_are_ranked_before_the_cap() -> None:
    recipe = Recipe(target_category=Category.TOPS, limit=2)
    items = [
        _item("t1", 1, vibes=["casual"], category=Category.TOPS),
        _item("t2", 2, vibes=["sporty"], category=Category.TOPS),
        _item("t3", 3, vibes=["office"], category=Category.TOPS),
    ]
    scanned = ScannedItem(category="bottoms", style_tags=["office"])

    resolution = _resolver(recipe, items).resolve("TOPIC", Category.TOPS, scanned_item=scanned)

    assert [item.id for item in resolution.items] == ["t3", "t1"]
    assert resolution.more_items[0].id == "t3"


def test_empty_category_is_flagged() -> None:
    recipe = Recipe(target_category=Category.SKIRTS, required={T.LENGTH: "midi"})

    resolution = _resolver(recipe, _bottoms_pool()).resolve("TOPIC", Category.SKIRTS)

    assert resolution.category_empty is True
    assert resolution.items == ()
    assert resolution.can_show_more is False


def test_unknown_topic_falls_back_to_the_whole_category() -> None:
    resolution = _resolver(Recipe(target_category=Category.TOPS), _bottoms_pool(), limit=4).resolve(
        "MISSING", Category.BOTTOMS
    )

    assert [item.id for item in resolution.items] == ["b1", "b2", "b3", "b4"]
    assert resolution.debug["recipe_found"] is False


def test_unlisted_optional_keys_relax_last_in_canonical_order() -> None:
    recipe = Recipe(
        target_category=Category.BOTTOMS,
        optional={T.TIER: "core", T.SHAPE: "wide", T.TONE: "dark"},
        relax_order=(T.SHAPE,),
    )

    sequence = relaxation_sequence(recipe, list(recipe.optional), include_unlisted=True)

    assert sequence == [T.SHAPE, T.TONE, T.TIER]
    assert relaxation_sequence(recipe, list(recipe.optional), include_unlisted=False) == [T.SHAPE]


def test_resolution_is_deterministic() -> None:
    recipe = Recipe(
        target_category=Category.BOTTOMS,
        required={T.STRUCTURE: "structured"},
        optional={T.TONE: "dark"},
        relax_order=(T.TONE,),
    )
    scanned = ScannedItem(style_tags=["minimal"])
    resolver = _resolver(recipe, _bottoms_pool())

    first = resolver.resolve("TOPIC", Category.BOTTOMS, scanned)
    second = resolver.resolve("TOPIC", Category.BOTTOMS, scanned)

    assert first == second
