"""Tip-sheet content resolution: suggestions, boards and unresolved cases."""

import pytest

from logic.boards import BoardResolver, clean_board_label
from logic.content_resolver import ContentRequest, ContentResolver, decide_mode
from models.content import (
    MISSING_CATEGORY,
    MISSING_PACK,
    UNKNOWN_CATEGORY,
    UNKNOWN_TOPIC,
    ContentUnresolved,
    Educational,
    Suggestions,
)
from models.scanned_item import ScannedItem
from models.taxonomy import BoardKind, Category, TopicMode
from models.topics import TOPICS
from tools.library_source import LibrarySnapshot, load_bundled_library


@pytest.fixture()
def library() -> LibrarySnapshot:
    return LibrarySnapshot.from_items(load_bundled_library())


def _request(library, topic: str, mode: TopicMode = TopicMode.SUGGESTIONS, **kwargs) -> ContentRequest:
    return ContentRequest(mode=mode, topic=topic, library=library, **kwargs)


def test_clean_board_label_strips_prefixes() -> None:
    assert clean_board_label("Do: keep dressiness consistent") == "Keep dressiness consistent"
    assert clean_board_label("  avoid :  logos fighting logos") == "Logos fighting logos"
    assert clean_board_label("TRY: tonal outfit") == "Tonal outfit"
    assert clean_board_label("Warm neutrals") == "Warm neutrals"
    assert clean_board_label("") == ""


def test_board_resolver_prefers_vibe_variant_and_joins_urls() -> None:
    resolver = BoardResolver(base_url="https://cdn.example.com/packs/")

    street = resolver.resolve("B_style_tension", "Street")
    fallback = resolver.resolve("B_style_tension", "sporty")

    assert [board.kind for board in street] == [BoardKind.DO, BoardKind.DONT, BoardKind.TRY]
    assert street[0].label == "One street statement, clean basics around it"
    assert street[0].image == "https://cdn.example.com/packs/boards/B_style_tension/street/do.webp"
    assert fallback[0].image.endswith("boards/B_style_tension/default/do.webp")
    assert resolver.resolve("B_unknown_pack") == []


def test_decide_mode_uses_boards_for_topics_without_category() -> None:
    assert decide_mode(TOPICS["TOPS__SHOES_NEUTRAL"]) is TopicMode.SUGGESTIONS
    assert decide_mode(TOPICS["DEFAULT__KEEP_SIMPLE"]) is TopicMode.EDUCATIONAL
    assert decide_mode(TOPICS["COLOR_TENSION__NEUTRAL_OTHERS"]) is TopicMode.EDUCATIONAL


def test_suggestions_resolve_against_library(library) -> None:
    resolver = ContentResolver()
    scanned = ScannedItem(category="tops", style_tags=["office", "minimal"])

    content = resolver.resolve(_request(library, "tops__bottoms_dark_structured", scanned_item=scanned))

    assert isinstance(content, Suggestions)
    assert content.category is Category.BOTTOMS
    assert [item.id for item in content.items] == ["bottoms-trouser-black"]
    assert content.meta.was_relaxed is False
    assert content.can_show_more is True
    assert all(item.category is Category.BOTTOMS for item in content.more_items)
    assert content.to_dict()["kind"] == "suggestions"


def test_target_category_override_resolves_category_less_topic(library) -> None:
    content = ContentResolver(grid_size=3).resolve(
        _request(library, "ACCESSORIES__OUTFIT_SIMPLE", target_category=Category.TOPS, user_vibes=["street"])
    )

    assert isinstance(content, Suggestions)
    assert content.category is Category.TOPS
    assert len(content.items) == 3
    assert content.items[0].id == "tops-tee-black"


def test_educational_resolves_boards(library) -> None:
    content = ContentResolver().resolve(
        _request(library, "FORMALITY_TENSION__AVOID_MIX", mode=TopicMode.EDUCATIONAL, vibe="office")
    )

    assert isinstance(content, Educational)
    assert [board.label for board in content.boards] == [
        "Keep dressiness consistent",
        "Mixing very formal + very casual",
        "Swap one piece to match the lane",
    ]


def test_unresolved_reasons(library) -> None:
    resolver = ContentResolver(packs={})

    unknown = resolver.resolve(_request(library, "NOT_A_TOPIC"))
    missing_category = resolver.resolve(_request(library, "DEFAULT__KEEP_SIMPLE"))
    missing_pack = resolver.resolve(_request(library, "STYLE_TENSION__LET_ONE_LEAD", mode=TopicMode.EDUCATIONAL))

    assert isinstance(unknown, ContentUnresolved) and unknown.reason == UNKNOWN_TOPIC
    assert isinstance(missing_category, ContentUnresolved) and missing_category.reason == MISSING_CATEGORY
    assert isinstance(missing_pack, ContentUnresolved) and missing_pack.reason == MISSING_PACK


def test_unrecognised_target_category_is_unresolved(library) -> None:
    resolver = ContentResolver()

    explicit = resolver.resolve(_request(library, "TOPS__SHOES_NEUTRAL", target_category="hats"))
    implicit = resolver.resolve(_request(library, "TOPS__SHOES_NEUTRAL"))

    assert isinstance(explicit, ContentUnresolved)
    assert explicit.reason == UNKNOWN_CATEGORY
    assert explicit.topic == "TOPS__SHOES_NEUTRAL"
    assert isinstance(implicit, Suggestions)
    assert implicit.category is Category.SHOES
