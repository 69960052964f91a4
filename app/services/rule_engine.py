"""Deterministic weather-to-outfit rule engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Literal

from app.schemas.recommendation import Provenance, RecommendationBundle, WeatherSnapshot

TemperatureBand = Literal["freezing", "cold", "cool", "mild", "warm", "hot"]

# Substituted when the snapshot carries no usable temperature.
DEFAULT_TEMPERATURE_C = 20.0
HUMID_THRESHOLD = 70

RAIN_FOOTWEAR = ("Waterproof shoes or boots",)
RAIN_ACCESSORIES = ("Umbrella", "Rain jacket")
RAIN_TIP = "Stay dry and watch for slippery surfaces"

SNOW_FOOTWEAR = ("Waterproof winter boots with good traction",)
SNOW_ACCESSORIES = ("Warm hat", "Waterproof gloves")
SNOW_TIP = "Dress in layers and watch for icy conditions"

WIND_LAYER = "Windbreaker"
WIND_TIP = "Secure loose clothing and accessories in windy conditions"

HUMID_TIP = "High humidity - choose breathable, moisture-wicking fabrics"


@dataclass(frozen=True, slots=True)
class BaseOutfit:
    essentials: tuple[str, ...]
    footwear: tuple[str, ...]
    accessories: tuple[str, ...]
    tip: str


BASE_OUTFITS: dict[TemperatureBand, BaseOutfit] = {
    "freezing": BaseOutfit(
        essentials=("Heavy winter coat", "Thermal underwear", "Warm sweater", "Insulated pants"),
        footwear=("Insulated winter boots",),
        accessories=("Warm hat", "Insulated gloves", "Scarf"),
        tip="Layer up and cover exposed skin to prevent frostbite",
    ),
    "cold": BaseOutfit(
        essentials=("Warm jacket", "Long-sleeve shirt", "Jeans or warm pants"),
        footwear=("Closed-toe shoes or boots",),
        accessories=("Light hat", "Gloves"),
        tip="Layers are key - you can remove them as you warm up",
    ),
    "cool": BaseOutfit(
        essentials=("Light jacket or cardigan", "Long-sleeve shirt", "Comfortable pants"),
        footwear=("Comfortable walking shoes",),
        accessories=(),
        tip="Perfect weather for layering - bring a light jacket",
    ),
    "mild": BaseOutfit(
        essentials=("Light shirt or t-shirt", "Comfortable pants or shorts"),
        footwear=("Sneakers or comfortable shoes",),
        accessories=("Sunglasses",),
        tip="Great weather for outdoor activities",
    ),
    "warm": BaseOutfit(
        essentials=("Light t-shirt", "Shorts or light pants"),
        footwear=("Breathable shoes or sandals",),
        accessories=("Sunglasses", "Light hat"),
        tip="Stay cool and hydrated",
    ),
    "hot": BaseOutfit(
        essentials=("Lightweight breathable shirt", "Shorts", "Tank top (optional)"),
        footwear=("Breathable sandals or lightweight shoes",),
        accessories=("Sun hat", "Sunglasses", "Sunscreen"),
        tip="Stay hydrated and seek shade during peak sun hours",
    ),
}


@dataclass(slots=True)
class OutfitDraft:
    essentials: list[str]
    footwear: list[str]
    accessories: list[str]
    tip: str

    @classmethod
    def from_base(cls, base: BaseOutfit) -> "OutfitDraft":
        return cls(
            essentials=list(base.essentials),
            footwear=list(base.footwear),
            accessories=list(base.accessories),
            tip=base.tip,
        )


ConditionPredicate = Callable[[str], bool]
ConditionApplier = Callable[[OutfitDraft], None]


@dataclass(slots=True)
class ConditionRule:
    id: str
    predicate: ConditionPredicate
    apply: ConditionApplier


def temperature_band(temperature_c: float) -> TemperatureBand:
    if temperature_c < 0:
        return "freezing"
    if temperature_c < 10:
        return "cold"
    if temperature_c < 20:
        return "cool"
    if temperature_c < 25:
        return "mild"
    if temperature_c < 30:
        return "warm"
    return "hot"


def _apply_rain(draft: OutfitDraft) -> None:
    draft.footwear = list(RAIN_FOOTWEAR)
    draft.accessories.extend(RAIN_ACCESSORIES)
    draft.tip = RAIN_TIP


def _apply_snow(draft: OutfitDraft) -> None:
    draft.footwear = list(SNOW_FOOTWEAR)
    draft.accessories = [item for item in draft.accessories if "hat" not in item.lower()]
    draft.accessories.extend(SNOW_ACCESSORIES)
    draft.tip = SNOW_TIP


def _apply_wind(draft: OutfitDraft) -> None:
    if not any("jacket" in item.lower() for item in draft.essentials):
        draft.essentials.append(WIND_LAYER)
    draft.tip = WIND_TIP


# Checked in order; only the first match applies.
CONDITION_RULES: tuple[ConditionRule, ...] = (
    ConditionRule(
        id="condition.rain",
        predicate=lambda text: "rain" in text or "drizzle" in text,
        apply=_apply_rain,
    ),
    ConditionRule(
        id="condition.snow",
        predicate=lambda text: "snow" in text,
        apply=_apply_snow,
    ),
    ConditionRule(
        id="condition.wind",
        predicate=lambda text: "wind" in text,
        apply=_apply_wind,
    ),
)


class RuleEngine:
    """Maps a weather snapshot to a fixed outfit bundle. Pure, never raises."""

    def recommend(
        self,
        snapshot: WeatherSnapshot,
        *,
        provenance: Provenance = "rule-based",
    ) -> RecommendationBundle:
        temperature = snapshot.temperature_c
        if temperature is None or not math.isfinite(temperature):
            temperature = DEFAULT_TEMPERATURE_C
        draft = OutfitDraft.from_base(BASE_OUTFITS[temperature_band(temperature)])

        condition = (snapshot.description or "").lower()
        for rule in CONDITION_RULES:
            if rule.predicate(condition):
                rule.apply(draft)
                break

        if snapshot.humidity is not None and snapshot.humidity > HUMID_THRESHOLD:
            draft.tip = HUMID_TIP

        return RecommendationBundle(
            essentials=draft.essentials,
            footwear=draft.footwear,
            accessories=draft.accessories,
            tip=draft.tip,
            provenance=provenance,
        )


__all__ = ["BASE_OUTFITS", "RuleEngine", "temperature_band"]
