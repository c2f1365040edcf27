"""Static filter recipes for suggestion topics.

A recipe describes which library items fit a topic: ``required`` constraints
must hold, ``optional`` constraints refine the pool when they can, and
``relax_order`` is the explicit order in which constraints may be dropped when
nothing matches. Required keys that are absent from ``relax_order`` are never
relaxed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from models.taxonomy import Category, FILTER_VALUES, FilterKey

DEFAULT_GRID_SIZE = 6

ConstraintValue = Union[str, Sequence[str]]
Constraints = Dict[FilterKey, Tuple[str, ...]]


def _freeze_constraints(raw: Mapping[FilterKey, ConstraintValue]) -> Constraints:
    frozen: Constraints = {}
    for key, value in raw.items():
        key = FilterKey(key)
        values = (value,) if isinstance(value, str) else tuple(value)
        if not values:
            raise ValueError(f"Constraint '{key.value}' needs at least one allowed value")
        frozen[key] = values
    return frozen


@dataclass(frozen=True)
class Recipe:
    """Filter definition for one topic's target category."""

    target_category: Category
    required: Constraints = field(default_factory=dict, hash=False)
    optional: Constraints = field(default_factory=dict, hash=False)
    relax_order: Tuple[FilterKey, ...] = ()
    limit: int = DEFAULT_GRID_SIZE

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_category", Category(self.target_category))
        object.__setattr__(self, "required", _freeze_constraints(self.required))
        object.__setattr__(self, "optional", _freeze_constraints(self.optional))
        object.__setattr__(self, "relax_order", tuple(FilterKey(key) for key in self.relax_order))
        overlap = set(self.required) & set(self.optional)
        if overlap:
            names = ", ".join(sorted(key.value for key in overlap))
            raise ValueError(f"Keys cannot be both required and optional: {names}")
        if len(set(self.relax_order)) != len(self.relax_order):
            raise ValueError("relax_order must not repeat keys")
        if self.limit < 1:
            raise ValueError("limit must be at least 1")

    def constraint_keys(self) -> List[FilterKey]:
        return list(self.required) + list(self.optional)


def _recipe(
    category: Category,
    required: Mapping[FilterKey, ConstraintValue] | None = None,
    optional: Mapping[FilterKey, ConstraintValue] | None = None,
    relax_order: Iterable[FilterKey] = (),
) -> Recipe:
    return Recipe(
        target_category=category,
        required=dict(required or {}),
        optional=dict(optional or {}),
        relax_order=tuple(relax_order),
    )


T = FilterKey

RECIPES: Dict[str, Recipe] = {
    # Scanned tops
    "TOPS__BOTTOMS_DARK_STRUCTURED": _recipe(
        Category.BOTTOMS,
        required={T.TONE: "dark", T.STRUCTURE: "structured", T.FORMALITY: "smart-casual"},
        optional={T.SHAPE: ["straight", "tapered"], T.TIER: ["core", "staple"]},
        relax_order=[T.SHAPE, T.TIER],
    ),
    "TOPS__SHOES_NEUTRAL": _recipe(
        Category.SHOES,
        required={T.SHAPE: "low_profile"},
        optional={T.TONE: ["neutral", "dark", "light"]},
        relax_order=[T.TONE],
    ),
    "TOPS__OUTERWEAR_LIGHT_LAYER": _recipe(
        Category.OUTERWEAR,
        required={T.OUTERWEAR_WEIGHT: "light"},
        optional={T.STRUCTURE: "soft"},
        relax_order=[T.STRUCTURE],
    ),
    # Scanned bottoms
    "BOTTOMS__TOP_NEUTRAL_SIMPLE": _recipe(
        Category.TOPS,
        required={T.STRUCTURE: "soft"},
        optional={T.TONE: ["neutral", "light"]},
        relax_order=[T.TONE],
    ),
    "BOTTOMS__SHOES_EVERYDAY": _recipe(Category.SHOES, required={T.SHAPE: "low_profile"}),
    "BOTTOMS__OUTERWEAR_OPTIONAL": _recipe(
        Category.OUTERWEAR,
        required={T.STRUCTURE: "structured", T.OUTERWEAR_WEIGHT: ["light", "medium"]},
        optional={T.FORMALITY: "smart-casual"},
        relax_order=[T.FORMALITY],
    ),
    # Scanned shoes
    "SHOES__TOP_RELAXED": _recipe(
        Category.TOPS,
        required={T.STRUCTURE: "soft"},
        optional={T.VOLUME: ["fitted", "oversized"]},
        relax_order=[T.VOLUME],
    ),
    "SHOES__BOTTOMS_STRUCTURED": _recipe(
        Category.BOTTOMS,
        required={T.STRUCTURE: "structured"},
        optional={T.SHAPE: ["straight", "tapered"]},
        relax_order=[T.SHAPE],
    ),
    "SHOES__OUTERWEAR_MINIMAL": _recipe(Category.OUTERWEAR, required={T.OUTERWEAR_WEIGHT: "light"}),
    # Scanned outerwear
    "OUTERWEAR__TOP_BASE": _recipe(
        Category.TOPS,
        required={T.STRUCTURE: "soft"},
        optional={T.VOLUME: "fitted"},
        relax_order=[T.VOLUME],
    ),
    "OUTERWEAR__BOTTOMS_BALANCED": _recipe(
        Category.BOTTOMS,
        optional={T.SHAPE: ["straight", "wide", "tapered"]},
        relax_order=[T.SHAPE],
    ),
    "OUTERWEAR__SHOES_SIMPLE": _recipe(Category.SHOES, required={T.SHAPE: "low_profile"}),
    # Scanned dresses
    "DRESSES__SHOES_SIMPLE": _recipe(
        Category.SHOES,
        optional={T.SHAPE: ["low_profile", "heeled"]},
        relax_order=[T.SHAPE],
    ),
    "DRESSES__OUTERWEAR_LIGHT": _recipe(Category.OUTERWEAR, required={T.OUTERWEAR_WEIGHT: "light"}),
    "DRESSES__ACCESSORIES_MINIMAL": _recipe(
        Category.ACCESSORIES,
        required={T.TIER: ["core", "staple"], T.TONE: ["neutral", "light"]},
    ),
    # Scanned skirts
    "SKIRTS__TOP_COMPLEMENTARY": _recipe(
        Category.TOPS,
        required={T.STRUCTURE: "soft"},
        optional={T.TONE: ["neutral", "light"]},
        relax_order=[T.TONE],
    ),
    "SKIRTS__SHOES_EVERYDAY": _recipe(
        Category.SHOES,
        optional={T.SHAPE: ["low_profile", "heeled"]},
        relax_order=[T.SHAPE],
    ),
    "SKIRTS__OUTERWEAR_OPTIONAL": _recipe(Category.OUTERWEAR, required={T.OUTERWEAR_WEIGHT: "light"}),
    # Scanned bags: suggest calm base pieces
    "BAGS__OUTFIT_CLEAN": _recipe(
        Category.TOPS,
        required={T.STRUCTURE: "soft"},
        optional={T.TONE: ["neutral", "light"]},
        relax_order=[T.TONE],
    ),
    "BAGS__SHOES_NEUTRAL": _recipe(
        Category.SHOES,
        required={T.SHAPE: "low_profile"},
        optional={T.TONE: ["neutral", "dark"]},
        relax_order=[T.TONE],
    ),
    "BAGS__ACCESSORIES_MINIMAL": _recipe(Category.ACCESSORIES),
    # Scanned accessories
    "ACCESSORIES__SHOES_NEUTRAL": _recipe(Category.SHOES, required={T.SHAPE: "low_profile"}),
    "ACCESSORIES__OUTERWEAR_CLEAN": _recipe(Category.OUTERWEAR, required={T.OUTERWEAR_WEIGHT: "light"}),
}

# Recipe keys that describe a light or optional layer must pin the layer weight.
_OUTERWEAR_WEIGHT_PATTERNS = ("OUTERWEAR_LIGHT", "OUTERWEAR_MINIMAL", "OUTERWEAR_OPTIONAL", "OUTERWEAR_CLEAN")


@dataclass(frozen=True)
class RecipeValidationError:
    recipe_key: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"[{self.recipe_key}] {self.field}: {self.message}"


def validate_recipes(recipes: Mapping[str, Recipe] | None = None) -> List[RecipeValidationError]:
    """Check recipe configuration for mistakes that would silently skew results."""

    errors: List[RecipeValidationError] = []
    for key, recipe in (RECIPES if recipes is None else recipes).items():
        keys = recipe.constraint_keys()
        uses_weight = FilterKey.OUTERWEAR_WEIGHT in keys
        if uses_weight and recipe.target_category is not Category.OUTERWEAR:
            errors.append(
                RecipeValidationError(
                    key,
                    "outerwear_weight",
                    f"set but target category is '{recipe.target_category.value}' (expected 'outerwear')",
                )
            )
        elif (
            not uses_weight
            and recipe.target_category is Category.OUTERWEAR
            and any(pattern in key for pattern in _OUTERWEAR_WEIGHT_PATTERNS)
        ):
            errors.append(
                RecipeValidationError(key, "outerwear_weight", "layer recipe is missing an outerwear_weight constraint")
            )

        for relax_key in recipe.relax_order:
            if relax_key not in keys:
                errors.append(
                    RecipeValidationError(key, "relax_order", f"'{relax_key.value}' is not constrained by the recipe")
                )
        for optional_key in recipe.optional:
            if optional_key not in recipe.relax_order:
                errors.append(
                    RecipeValidationError(key, "relax_order", f"optional key '{optional_key.value}' has no relax position")
                )

        for constraint_key, values in {**recipe.required, **recipe.optional}.items():
            unknown = [value for value in values if value not in FILTER_VALUES[constraint_key]]
            if unknown:
                errors.append(
                    RecipeValidationError(
                        key, constraint_key.value, f"unknown values {', '.join(unknown)}"
                    )
                )
    return errors


def assert_valid_recipes(recipes: Mapping[str, Recipe] | None = None) -> None:
    """Raise ``ValueError`` listing every recipe validation failure."""

    errors = validate_recipes(recipes)
    if errors:
        formatted = "\n".join(f"  {error}" for error in errors)
        raise ValueError(f"Recipe validation failed:\n{formatted}")


__all__ = [
    "DEFAULT_GRID_SIZE",
    "RECIPES",
    "Recipe",
    "RecipeValidationError",
    "assert_valid_recipes",
    "validate_recipes",
]
