"""Top-level tip-sheet content resolution.

The resolver picks between a shoppable suggestions grid and educational
boards, runs the recipe and ranking steps against an already-fetched library
view and returns an immutable result. It performs no I/O and keeps no state
between calls, so it is safe to share and trivially testable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Union

from logic.boards import BoardResolver
from logic.ranking import rank
from logic.recipe_resolver import RecipeResolver
from models.content import (
    MISSING_CATEGORY,
    MISSING_PACK,
    UNKNOWN_CATEGORY,
    UNKNOWN_TOPIC,
    ContentUnresolved,
    Educational,
    Suggestions,
    SuggestionsMeta,
)
from models.library_item import CatalogView, LibraryItem
from models.recipes import Recipe
from models.scanned_item import ScannedItem
from models.taxonomy import Category, TopicMode, parse_category
from models.tip_packs import TipPacks
from models.topics import TOPICS, Topic

LOGGER = logging.getLogger(__name__)


@dataclass
class ContentRequest:
    """Everything needed to resolve one tip sheet."""

    mode: TopicMode
    topic: str
    library: CatalogView
    scanned_item: Optional[ScannedItem] = None
    vibe: Optional[str] = None
    user_vibes: Sequence[str] = field(default_factory=list)
    target_category: Optional[Category] = None


def decide_mode(topic: Topic) -> TopicMode:
    """Suggestion topics without a target category fall back to boards."""

    if topic.mode is TopicMode.EDUCATIONAL or topic.target_category is None:
        return TopicMode.EDUCATIONAL
    return TopicMode.SUGGESTIONS


class ContentResolver:
    """Resolves tip-sheet content from static configuration and a library view."""

    def __init__(
        self,
        recipes: Mapping[str, Recipe] | None = None,
        topics: Mapping[str, Topic] | None = None,
        packs: TipPacks | None = None,
        grid_size: Optional[int] = None,
        board_base_url: str = "",
    ) -> None:
        self.recipes = recipes
        self.topics = TOPICS if topics is None else topics
        self.grid_size = grid_size
        self.boards = BoardResolver(packs=packs, base_url=board_base_url)

    def topic(self, key: Optional[str]) -> Optional[Topic]:
        if not key:
            return None
        return self.topics.get(key.strip().upper())

    def resolve(self, request: ContentRequest) -> Union[Suggestions, Educational, ContentUnresolved]:
        topic = self.topic(request.topic)
        if topic is None:
            LOGGER.info("Unknown topic requested", extra={"topic": request.topic})
            return ContentUnresolved(reason=UNKNOWN_TOPIC, topic=request.topic)

        if request.mode is TopicMode.EDUCATIONAL:
            return self._resolve_educational(topic, request)
        return self._resolve_suggestions(topic, request)

    def _resolve_educational(self, topic: Topic, request: ContentRequest) -> Union[Educational, ContentUnresolved]:
        boards = self.boards.resolve(topic.pack_id, request.vibe)
        if not boards:
            LOGGER.warning("Tip pack has no boards", extra={"topic": topic.key, "pack_id": topic.pack_id})
            return ContentUnresolved(reason=MISSING_PACK, topic=topic.key)
        return Educational(topic=topic.key, boards=tuple(boards))

    def _resolve_suggestions(self, topic: Topic, request: ContentRequest) -> Union[Suggestions, ContentUnresolved]:
        # The topic's own category applies only when none was passed.
        if request.target_category is None:
            category = topic.target_category
        else:
            category = parse_category(request.target_category)
            if category is None:
                LOGGER.info("Unknown target category requested", extra={"topic": topic.key})
                return ContentUnresolved(reason=UNKNOWN_CATEGORY, topic=topic.key)
        if category is None:
            return ContentUnresolved(reason=MISSING_CATEGORY, topic=topic.key)

        scanned_vibes = request.scanned_item.vibes if request.scanned_item else []
        user_vibes = list(request.user_vibes or [])

        def ranker(items: Sequence[LibraryItem]) -> List[LibraryItem]:
            return rank(items, scanned_vibes, user_vibes)

        resolver = RecipeResolver(request.library, recipes=self.recipes, limit=self.grid_size)
        resolution = resolver.resolve(topic.key, category, request.scanned_item, ranker=ranker)
        return Suggestions(
            topic=topic.key,
            category=category,
            items=resolution.items,
            more_items=resolution.more_items,
            can_show_more=resolution.can_show_more,
            meta=SuggestionsMeta(
                relaxed_keys=resolution.relaxed_keys,
                locked_keys=resolution.locked_keys,
                was_relaxed=resolution.was_relaxed,
                category_empty=resolution.category_empty,
            ),
        )


__all__ = ["ContentRequest", "ContentResolver", "decide_mode"]
