"""Portion scaling of per-100g nutrition."""

from decimal import ROUND_HALF_UP, Decimal

from cb_lens.domain.errors import InvalidPortionError
from cb_lens.domain.nutrition import (
    MacroShare,
    NutrientProfile,
    PortionPreset,
    ScaledNutrition,
)

PORTION_MULTIPLIERS: dict[PortionPreset, float] = {
    PortionPreset.HALF: 0.5,
    PortionPreset.NORMAL: 1.0,
    PortionPreset.LARGE: 1.5,
}

_ATWATER_KCAL_PER_G = {
    "protein": 4,
    "carbs": 4,
    "fat": 9,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def portion_multiplier(preset: PortionPreset | str) -> float:
    """Return the weight multiplier for a portion preset."""
    try:
        resolved = PortionPreset(preset)
    except ValueError as exc:
        raise InvalidPortionError(f"Unknown portion preset: {preset!r}") from exc
    multiplier = PORTION_MULTIPLIERS.get(resolved)
    if multiplier is None:
        raise InvalidPortionError(f"No multiplier for portion preset: {resolved.value}")
    return multiplier


def scale(
    profile: NutrientProfile,
    estimated_grams: float,
    preset: PortionPreset | str,
) -> ScaledNutrition:
    """Convert a per-100g profile into absolute nutrients for a portion."""
    if estimated_grams <= 0:
        raise ValueError(f"estimated_grams must be positive, got {estimated_grams}")
    effective_grams = estimated_grams * portion_multiplier(preset)
    return ScaledNutrition(
        calories=_scale_value(profile.calories_per_100g, effective_grams),
        protein=_scale_value(profile.protein_per_100g, effective_grams),
        carbs=_scale_value(profile.carbs_per_100g, effective_grams),
        fat=_scale_value(profile.fat_per_100g, effective_grams),
        effective_grams=effective_grams,
    )


def macro_distribution(protein: float, carbs: float, fat: float) -> list[MacroShare]:
    """Split macro calories by Atwater factors into rounded percentages."""
    grams = {"protein": protein, "carbs": carbs, "fat": fat}
    calories = {
        macro: amount * _ATWATER_KCAL_PER_G[macro] for macro, amount in grams.items()
    }
    total = sum(calories.values())
    return [
        MacroShare(
            macro=macro,
            calories=macro_calories,
            percentage=round_half_up(macro_calories / total * 100) if total > 0 else 0,
        )
        for macro, macro_calories in calories.items()
    ]


def _scale_value(per_100g: float, effective_grams: float) -> int:
    return round_half_up(per_100g * effective_grams / 100)
