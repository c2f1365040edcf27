"""Apply a topic recipe to the library and track which constraints were relaxed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from logic.ranking import rank
from models.library_item import CatalogView, LibraryItem
from models.recipes import DEFAULT_GRID_SIZE, RECIPES, Constraints, Recipe
from models.scanned_item import ScannedItem
from models.taxonomy import FILTER_KEY_ORDER, Category, FilterKey

LOGGER = logging.getLogger(__name__)

Ranker = Callable[[Sequence[LibraryItem]], List[LibraryItem]]


@dataclass(frozen=True)
class RecipeResolution:
    """Outcome of applying one recipe to a category pool."""

    items: Tuple[LibraryItem, ...]
    more_items: Tuple[LibraryItem, ...]
    relaxed_keys: Tuple[FilterKey, ...]
    locked_keys: Tuple[FilterKey, ...]
    category_empty: bool = False
    debug: Dict[str, object] = field(default_factory=dict, hash=False, compare=False)

    @property
    def was_relaxed(self) -> bool:
        return bool(self.relaxed_keys)

    @property
    def can_show_more(self) -> bool:
        return len(self.more_items) > len(self.items)


def matches_constraints(item: LibraryItem, constraints: Mapping[FilterKey, Sequence[str]]) -> bool:
    """Return True when every constrained attribute the item declares is allowed.

    Attributes the item does not declare are unknown and never exclude it.
    """

    for key, allowed in constraints.items():
        value = item.attribute(key)
        if value is None:
            continue
        if value not in allowed:
            return False
    return True


def _filter(pool: Sequence[LibraryItem], constraints: Constraints) -> List[LibraryItem]:
    return [item for item in pool if matches_constraints(item, constraints)]


def _canonical(keys) -> Tuple[FilterKey, ...]:
    return tuple(sorted(keys, key=FILTER_KEY_ORDER.__getitem__))


def relaxation_sequence(recipe: Recipe, keys: Sequence[FilterKey], include_unlisted: bool) -> List[FilterKey]:
    """Order in which ``keys`` may be dropped.

    Keys follow the recipe's ``relax_order``. With ``include_unlisted`` the
    remaining keys are appended in canonical FilterKey order; otherwise they
    are never relaxed.
    """

    sequence = [key for key in recipe.relax_order if key in keys]
    if include_unlisted:
        sequence.extend(_canonical(key for key in keys if key not in sequence))
    return sequence


class RecipeResolver:
    """Resolves the suggestion pool for a topic against one library view."""

    def __init__(
        self,
        library: CatalogView,
        recipes: Mapping[str, Recipe] | None = None,
        limit: Optional[int] = None,
    ) -> None:
        self.library = library
        self.recipes = RECIPES if recipes is None else recipes
        self.limit = limit

    def recipe_for(self, topic: Optional[str], category: Category) -> Optional[Recipe]:
        recipe = self.recipes.get(topic or "")
        if recipe is None or recipe.target_category is not category:
            return None
        return recipe

    def resolve(
        self,
        topic: Optional[str],
        category: Category,
        scanned_item: Optional[ScannedItem] = None,
        ranker: Optional[Ranker] = None,
    ) -> RecipeResolution:
        """Filter, relax and rank the category pool for ``topic``.

        ``ranker`` orders both the primary items (before the display cap is
        applied) and the broader pool; without one, items are ranked by the
        scanned item's vibes alone.
        """

        if ranker is None:
            scanned_vibes = scanned_item.vibes if scanned_item else []
            ranker = lambda items: rank(items, scanned_vibes, [])  # noqa: E731

        pool = tuple(self.library.get_by_category(category))
        recipe = self.recipe_for(topic, category)
        limit = self.limit or (recipe.limit if recipe else DEFAULT_GRID_SIZE)

        if not pool:
            LOGGER.info("Category has no library items", extra={"topic": topic, "category": category.value})
            return RecipeResolution(
                items=(),
                more_items=(),
                relaxed_keys=(),
                locked_keys=_canonical(recipe.constraint_keys()) if recipe else (),
                category_empty=True,
                debug={"candidate_count": 0, "recipe_found": recipe is not None},
            )

        required: Constraints = dict(recipe.required) if recipe else {}
        optional: Constraints = dict(recipe.optional) if recipe else {}
        relaxed: List[FilterKey] = []
        steps: List[Tuple[str, int]] = []

        survivors = _filter(pool, required)
        strict_required_count = len(survivors)
        if not survivors and recipe is not None:
            for key in relaxation_sequence(recipe, list(required), include_unlisted=False):
                required.pop(key)
                relaxed.append(key)
                survivors = _filter(pool, required)
                steps.append((key.value, len(survivors)))
                if survivors:
                    break

        matched = survivors
        if survivors and optional:
            matched = _filter(survivors, optional)
            if not matched:
                for key in relaxation_sequence(recipe, list(optional), include_unlisted=True):
                    optional.pop(key)
                    relaxed.append(key)
                    matched = _filter(survivors, optional)
                    steps.append((key.value, len(matched)))
                    if matched:
                        break

        items = tuple(ranker(matched)[:limit])
        # Whole ranked category, shown items included; "show more" swaps it in for the grid.
        more_items = tuple(ranker(pool))
        locked = _canonical(list(required) + list(optional))
        debug = {
            "candidate_count": len(pool),
            "strict_required_count": strict_required_count,
            "matched_count": len(matched),
            "limit": limit,
            "recipe_found": recipe is not None,
            "relax_steps": steps,
        }
        if relaxed:
            LOGGER.debug(
                "Recipe constraints relaxed",
                extra={"topic": topic, "category": category.value, "relaxed": [key.value for key in relaxed]},
            )
        return RecipeResolution(
            items=items,
            more_items=more_items,
            relaxed_keys=tuple(relaxed),
            locked_keys=locked,
            debug=debug,
        )


__all__ = ["RecipeResolution", "RecipeResolver", "matches_constraints", "relaxation_sequence"]
