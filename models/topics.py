"""Styling topics (bullet keys) and the content each one opens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from models.taxonomy import Category, TopicMode


@dataclass(frozen=True)
class Topic:
    """One styling bullet: the copy shown with it and where its content lives."""

    key: str
    mode: TopicMode
    pack_id: str
    subtitle: str = ""
    target_category: Optional[Category] = None


def _suggest(key: str, category: Optional[Category], pack_id: str, subtitle: str) -> Topic:
    return Topic(key=key, mode=TopicMode.SUGGESTIONS, pack_id=pack_id, subtitle=subtitle, target_category=category)


def _educate(key: str, pack_id: str, subtitle: str) -> Topic:
    return Topic(key=key, mode=TopicMode.EDUCATIONAL, pack_id=pack_id, subtitle=subtitle)


_TOPIC_LIST: List[Topic] = [
    # Missing pieces: shoppable suggestions for a target category
    _suggest("TOPS__BOTTOMS_DARK_STRUCTURED", Category.BOTTOMS, "A_bottoms_dark_structured",
             "These ground the look and make the top easier to wear."),
    _suggest("TOPS__SHOES_NEUTRAL", Category.SHOES, "A_shoes_neutral_everyday",
             "Simple shoes keep the outfit cohesive."),
    _suggest("TOPS__OUTERWEAR_LIGHT_LAYER", Category.OUTERWEAR, "A_outerwear_light_layer",
             "A single layer adds structure without feeling heavy."),
    _suggest("BOTTOMS__TOP_NEUTRAL_SIMPLE", Category.TOPS, "A_tops_neutral_simple",
             "Neutral tops pair with more bottoms, more often."),
    _suggest("BOTTOMS__SHOES_EVERYDAY", Category.SHOES, "A_shoes_dont_compete",
             "Keep shoes quiet so the outfit reads intentional."),
    _suggest("BOTTOMS__OUTERWEAR_OPTIONAL", Category.OUTERWEAR, "A_outerwear_optional_structure",
             "A blazer or trench can instantly polish the look."),
    _suggest("SHOES__TOP_RELAXED", Category.TOPS, "A_tops_relaxed_everyday",
             "Easy tops make the shoe choice feel wearable."),
    _suggest("SHOES__BOTTOMS_STRUCTURED", Category.BOTTOMS, "A_bottoms_simple_structured",
             "Clean bottoms help the outfit feel put together."),
    _suggest("SHOES__OUTERWEAR_MINIMAL", Category.OUTERWEAR, "A_outerwear_minimal_layering",
             "One clean layer keeps the look cohesive."),
    _suggest("OUTERWEAR__TOP_BASE", Category.TOPS, "A_tops_easy_base_layer",
             "A simple base makes outerwear feel effortless."),
    _suggest("OUTERWEAR__BOTTOMS_BALANCED", Category.BOTTOMS, "A_bottoms_balanced",
             "Balanced proportions keep the silhouette clean."),
    _suggest("OUTERWEAR__SHOES_SIMPLE", Category.SHOES, "A_shoes_simple",
             "Understated shoes let the outerwear lead."),
    _suggest("DRESSES__SHOES_SIMPLE", Category.SHOES, "A_shoes_dont_compete",
             "Minimal shoes keep the dress as the focal point."),
    _suggest("DRESSES__OUTERWEAR_LIGHT", Category.OUTERWEAR, "A_outerwear_light_layer",
             "A layer makes dresses more versatile day-to-day."),
    _suggest("DRESSES__ACCESSORIES_MINIMAL", Category.ACCESSORIES, "A_accessories_minimal",
             "One understated detail is usually enough."),
    _suggest("SKIRTS__TOP_COMPLEMENTARY", Category.TOPS, "A_tops_neutral_simple",
             "A simple top keeps skirts easy to style."),
    _suggest("SKIRTS__SHOES_EVERYDAY", Category.SHOES, "A_shoes_neutral_everyday",
             "Everyday shoes keep the skirt wearable."),
    _suggest("SKIRTS__OUTERWEAR_OPTIONAL", Category.OUTERWEAR, "A_outerwear_light_layer",
             "A layer makes the outfit feel finished."),
    _suggest("BAGS__OUTFIT_CLEAN", Category.TOPS, "A_outfit_clean_simple",
             "Let the bag be the accent; keep everything else calm."),
    _suggest("BAGS__SHOES_NEUTRAL", Category.SHOES, "A_shoes_neutral_everyday",
             "Neutral shoes keep the bag from competing."),
    _suggest("BAGS__ACCESSORIES_MINIMAL", Category.ACCESSORIES, "A_accessories_minimal",
             "Choose one focal point across bag and accessories."),
    _suggest("ACCESSORIES__OUTFIT_SIMPLE", None, "A_outfit_clean_simple",
             "Simple pieces let accessories feel intentional."),
    _suggest("ACCESSORIES__SHOES_NEUTRAL", Category.SHOES, "A_shoes_neutral_everyday",
             "Neutral shoes keep the overall look cohesive."),
    _suggest("ACCESSORIES__OUTERWEAR_CLEAN", Category.OUTERWEAR, "A_outerwear_minimal_layering",
             "One clean layer ties the look together."),
    # Concept advice without a category: these open boards, not a grid
    _suggest("DEFAULT__KEEP_SIMPLE", None, "A_outfit_clean_simple",
             "Let one item lead; everything else supports it."),
    _suggest("DEFAULT__NEUTRAL_COLORS", None, "A_palette_neutral",
             "Neutrals reduce friction and increase matchability."),
    _suggest("DEFAULT__AVOID_TEXTURE", None, "A_texture_avoid_competing",
             "Keeping textures aligned makes the outfit feel cohesive."),
    # Styling tips: always educational
    _educate("FORMALITY_TENSION__MATCH_DRESSINESS", "B_formality_tension",
             "When everything is equally casual or equally polished, it looks intentional."),
    _educate("FORMALITY_TENSION__AVOID_MIX", "B_formality_tension",
             "Pick one lane and let the whole outfit match it."),
    _educate("STYLE_TENSION__LET_ONE_LEAD", "B_style_tension",
             "Keep surrounding pieces clean so the outfit reads cohesive."),
    _educate("STYLE_TENSION__STICK_CLASSIC", "B_style_tension",
             "Classic basics reduce style conflict instantly."),
    _educate("COLOR_TENSION__NEUTRAL_OTHERS", "B_color_tension",
             "One focal color works better than multiple competitors."),
    _educate("COLOR_TENSION__CONTRAST_OR_TONAL", "B_color_tension",
             "Pick one strategy so the outfit feels intentional."),
    _educate("USAGE_MISMATCH__CLEAR_CONTEXT", "B_usage_mismatch",
             "Work vs weekend: choose one direction and align the pieces."),
    _educate("USAGE_MISMATCH__CONSISTENT_PURPOSE", "B_usage_mismatch",
             "Avoid mixing pieces that signal different purposes."),
    _educate("SHOES_CONFIDENCE_DAMPEN__SIMPLE_SHOES", "B_shoes_confidence_dampen",
             "A simpler shoe shape makes the whole outfit feel calmer."),
    _educate("SHOES_CONFIDENCE_DAMPEN__MINIMAL_SHAPE", "B_shoes_confidence_dampen",
             "Clean lines reduce noise in the outfit."),
    _educate("MISSING_KEY_SIGNAL__SIMPLE_VERSATILE", "B_missing_key_signal",
             "When in doubt, build around one strong piece."),
]

TOPICS: Dict[str, Topic] = {topic.key: topic for topic in _TOPIC_LIST}


def get_topic(key: str | None) -> Optional[Topic]:
    if not key:
        return None
    return TOPICS.get(key.strip().upper())


def topics_by_mode(mode: TopicMode) -> List[str]:
    return [topic.key for topic in _TOPIC_LIST if topic.mode is mode]


__all__ = ["TOPICS", "Topic", "get_topic", "topics_by_mode"]
