"""Recipe configuration validation."""

import pytest

from models.recipes import RECIPES, Recipe, assert_valid_recipes, validate_recipes
from models.taxonomy import Category, FilterKey, TopicMode
from models.topics import TOPICS


def test_bundled_recipes_are_valid() -> None:
    assert validate_recipes() == []
    assert_valid_recipes()


def test_every_suggestion_topic_with_category_has_matching_recipe() -> None:
    for key, topic in TOPICS.items():
        if topic.mode is TopicMode.SUGGESTIONS and topic.target_category is not None:
            assert key in RECIPES, key
            assert RECIPES[key].target_category is topic.target_category


def test_recipe_rejects_required_optional_overlap() -> None:
    with pytest.raises(ValueError):
        Recipe(
            target_category=Category.TOPS,
            required={FilterKey.TONE: "dark"},
            optional={FilterKey.TONE: "light"},
        )


def test_recipe_rejects_duplicate_relax_keys_and_bad_limit() -> None:
    with pytest.raises(ValueError):
        Recipe(target_category=Category.TOPS, optional={FilterKey.TONE: "dark"}, relax_order=(FilterKey.TONE, FilterKey.TONE))
    with pytest.raises(ValueError):
        Recipe(target_category=Category.TOPS, limit=0)


def test_validation_flags_misconfigured_recipes() -> None:
    recipes = {
        "TOPS__SHOES_WEIGHTED": Recipe(
            target_category=Category.SHOES,
            required={FilterKey.OUTERWEAR_WEIGHT: "light"},
        ),
        "TOPS__OUTERWEAR_LIGHT": Recipe(target_category=Category.OUTERWEAR),
        "TOPS__BOTTOMS_UNORDERED": Recipe(
            target_category=Category.BOTTOMS,
            optional={FilterKey.SHAPE: "straight"},
            relax_order=(FilterKey.TIER,),
        ),
        "TOPS__TOPS_TYPO": Recipe(target_category=Category.TOPS, required={FilterKey.TONE: "darkish"}),
    }

    errors = validate_recipes(recipes)
    by_key = {}
    for error in errors:
        by_key.setdefault(error.recipe_key, []).append(error.field)

    assert by_key["TOPS__SHOES_WEIGHTED"] == ["outerwear_weight"]
    assert by_key["TOPS__OUTERWEAR_LIGHT"] == ["outerwear_weight"]
    assert by_key["TOPS__BOTTOMS_UNORDERED"] == ["relax_order", "relax_order"]
    assert by_key["TOPS__TOPS_TYPO"] == ["tone"]
    with pytest.raises(ValueError, match="Recipe validation failed"):
        assert_valid_recipes(recipes)
