"""Nutrition resolution with a fallback cascade over an unreliable lookup."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from nutri_coach.domain.nutrition import FoodSuggestion, NutritionRecord
from nutri_coach.errors import LookupTransportError, NoNutritionMatch
from nutri_coach.services.cache import LookupCache

_logger = logging.getLogger(__name__)

MAX_REWRITES = 5

SYNONYMS: dict[str, list[str]] = {
    "snack": ["potato chips", "crackers", "nuts"],
    "snacks": ["potato chips", "crackers", "nuts"],
    "food": ["bread", "sandwich", "meal"],
    "package": ["potato chips", "crackers", "snack"],
    "bag": ["potato chips", "popcorn", "nuts"],
    "container": ["yogurt", "milk", "juice"],
    "bottle": ["water", "soda", "juice"],
    "box": ["cereal", "crackers", "pasta"],
    "chips": ["potato chips", "tortilla chips", "corn chips"],
    "crackers": ["saltine crackers", "wheat crackers", "cheese crackers"],
    "nuts": ["almonds", "peanuts", "cashews"],
    "fruit": ["apple", "banana", "orange"],
    "vegetable": ["carrot", "broccoli", "lettuce"],
    "meat": ["chicken", "beef", "pork"],
    "bread": ["white bread", "wheat bread", "whole grain bread"],
    "pizza": ["cheese pizza", "pepperoni pizza", "margherita pizza"],
    "burger": ["cheeseburger", "hamburger", "chicken burger"],
    "salad": ["caesar salad", "garden salad", "chicken salad"],
    "pasta": ["spaghetti", "macaroni", "penne pasta"],
    "rice": ["white rice", "brown rice", "fried rice"],
    "soup": ["chicken soup", "vegetable soup", "tomato soup"],
    "sandwich": ["turkey sandwich", "ham sandwich", "club sandwich"],
    "breakfast": ["cereal", "toast", "eggs"],
    "lunch": ["sandwich", "salad", "soup"],
    "dinner": ["chicken", "pasta", "rice"],
}

GENERIC_QUERIES = ("generic food", "mixed food", "processed food")


def _record(name: str, unit: str, grams: float, *values: float) -> NutritionRecord:
    (
        calories,
        fat,
        saturated_fat,
        cholesterol,
        sodium,
        carbs,
        fiber,
        sugar,
        protein,
        potassium,
        vitamin_c,
        calcium,
        iron,
    ) = values
    return NutritionRecord(
        name=name,
        serving_unit=unit,
        serving_grams=grams,
        calories=calories,
        protein_g=protein,
        fat_g=fat,
        saturated_fat_g=saturated_fat,
        carbs_g=carbs,
        fiber_g=fiber,
        sugar_g=sugar,
        sodium_mg=sodium,
        cholesterol_mg=cholesterol,
        potassium_mg=potassium,
        vitamin_c_mg=vitamin_c,
        calcium_mg=calcium,
        iron_mg=iron,
    )


# kcal, fat, sat fat, cholesterol, sodium, carbs, fiber, sugar, protein,
# potassium, vitamin C, calcium, iron
STATIC_FOODS: dict[str, NutritionRecord] = {
    "apple": _record(
        "Apple", "medium", 182,
        95, 0.3, 0.1, 0, 2, 25, 4.4, 19, 0.5, 195, 8.4, 11, 0.2,
    ),
    "banana": _record(
        "Banana", "medium", 118,
        105, 0.4, 0.1, 0, 1, 27, 3.1, 14, 1.3, 422, 10.3, 6, 0.3,
    ),
    "chicken": _record(
        "Chicken Breast", "100g", 100,
        165, 3.6, 1.0, 85, 74, 0, 0, 0, 31, 256, 0, 15, 1.0,
    ),
    "bread": _record(
        "White Bread", "slice", 28,
        77, 1.0, 0.2, 0, 170, 15, 0.9, 1.4, 2.6, 30, 0, 60, 0.9,
    ),
    "rice": _record(
        "White Rice", "cup", 158,
        205, 0.4, 0.1, 0, 2, 45, 0.6, 0.1, 4.3, 55, 0, 16, 0.8,
    ),
}  # fmt: skip


def placeholder_record(label: str) -> NutritionRecord:
    """Mid-range estimate used when nothing else matched."""
    return _record(label, "serving", 100, 150, 5, 1, 0, 200, 25, 3, 5, 8, 200, 5, 50, 1)


class NutritionLookupClient(Protocol):
    """Interface for the external nutrition lookup."""

    async def natural_nutrients(self, query: str) -> dict[str, object]:
        """Return ``{"foods": [...]}`` for a query; empty when unmatched."""

    async def search_instant(self, query: str) -> dict[str, object]:
        """Return instant-search results for a query."""


QueryLookup = Callable[[str], Awaitable[NutritionRecord | None]]


class ResolutionStrategy(Protocol):
    """One step of the resolution cascade."""

    name: str

    async def attempt(self, label: str) -> NutritionRecord | None:
        """Return a record for the label, or None to continue."""


@dataclass
class DirectQuery:
    """Submit the label as-is."""

    lookup: QueryLookup
    name: str = "direct"

    async def attempt(self, label: str) -> NutritionRecord | None:
        return await self.lookup(label)


@dataclass
class SynonymRewrite:
    """Retry with rewritten queries for vague photographic labels."""

    lookup: QueryLookup
    max_rewrites: int = MAX_REWRITES
    name: str = "synonyms"

    async def attempt(self, label: str) -> NutritionRecord | None:
        for query in alternative_queries(label, self.max_rewrites):
            _logger.info("Nutrition rewrite: %s -> %s", label, query)
            record = await self.lookup(query)
            if record is not None:
                return record
        return None


@dataclass
class QuantityPrefix:
    """Retry once with an explicit quantity token."""

    lookup: QueryLookup
    name: str = "quantity"

    async def attempt(self, label: str) -> NutritionRecord | None:
        return await self.lookup(f"1 {label}")


@dataclass
class StaticTable:
    """Embedded table of common foods, ending in a generic placeholder."""

    foods: dict[str, NutritionRecord] = field(default_factory=lambda: STATIC_FOODS)
    name: str = "static"

    async def attempt(self, label: str) -> NutritionRecord | None:
        lowered = label.strip().lower()
        if not lowered:
            return None
        for key, record in self.foods.items():
            if key in lowered:
                return record
        return placeholder_record(label.strip())


def alternative_queries(label: str, limit: int = MAX_REWRITES) -> list[str]:
    """Build rewritten queries for a label, most specific first."""
    lowered = label.strip().lower()
    alternatives: list[str] = list(SYNONYMS.get(lowered, []))
    alternatives.extend(GENERIC_QUERIES)
    alternatives.extend([f"{lowered} snack", f"{lowered} food", f"processed {lowered}"])
    cleaned = re.sub(r"[^a-z\s]", "", lowered).strip()
    if cleaned and cleaned != lowered:
        alternatives.append(cleaned)
    return alternatives[:limit]


@dataclass
class NutritionResolver:
    """Resolves a food label to a nutrition record.

    Strategies run strictly in order and the first record wins. A missing
    match never raises; only transport failures escape as
    ``LookupTransportError``.
    """

    client: NutritionLookupClient
    cache: LookupCache
    hit_ttl_seconds: int = 86400
    miss_ttl_seconds: int = 600
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    strategies: list[ResolutionStrategy] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.strategies:
            self.strategies = [
                DirectQuery(self.lookup),
                SynonymRewrite(self.lookup),
                QuantityPrefix(self.lookup),
                StaticTable(),
            ]

    async def resolve(self, label: str) -> NutritionRecord | None:
        """Run the cascade for a label; None only when every step came up empty."""
        cleaned = label.strip()
        if not cleaned:
            return None
        for strategy in self.strategies:
            record = await strategy.attempt(cleaned)
            if record is not None:
                if strategy.name != "direct":
                    _logger.info(
                        "Nutrition resolved via %s: label=%s name=%s",
                        strategy.name,
                        cleaned,
                        record.name,
                    )
                return record
        _logger.warning("Nutrition cascade exhausted: label=%s", cleaned)
        return None

    async def resolve_or_raise(self, label: str) -> NutritionRecord:
        """Like ``resolve`` but raise ``NoNutritionMatch`` when nothing matched."""
        record = await self.resolve(label)
        if record is None:
            raise NoNutritionMatch(label)
        return record

    async def lookup(self, query: str) -> NutritionRecord | None:
        """Return the first record the lookup service has for a query."""
        cached = self.cache.get(query)
        if cached is not None:
            return cached[0] if cached else None

        payload = await self._call_with_retry(
            lambda: self.client.natural_nutrients(query), query=query
        )
        records = [parse_food(food) for food in payload.get("foods") or []]
        ttl = self.hit_ttl_seconds if records else self.miss_ttl_seconds
        self.cache.put(query, records, ttl_seconds=ttl)
        return records[0] if records else None

    async def search_foods(self, query: str, limit: int = 10) -> list[FoodSuggestion]:
        """Instant search over common food names."""
        payload = await self._call_with_retry(
            lambda: self.client.search_instant(query), query=query
        )
        return [
            FoodSuggestion(
                name=str(item.get("food_name", "")),
                serving_unit=item.get("serving_unit"),
                serving_qty=_optional_float(item.get("serving_qty")),
            )
            for item in (payload.get("common") or [])[:limit]
        ]

    async def _call_with_retry(
        self, func: Callable[[], Awaitable[dict[str, object]]], *, query: str
    ) -> dict[str, object]:
        """Call the lookup, retrying transient transport failures only."""
        attempt = 0
        while True:
            try:
                return await func()
            except (httpx.HTTPError, ValueError) as exc:
                attempt += 1
                status_code = _status_code_from_exception(exc)
                _logger.warning(
                    "Nutrition lookup failed (attempt %s/%s, status=%s): %s",
                    attempt,
                    self.retry_attempts + 1,
                    status_code,
                    exc,
                )
                if not _is_transient(exc) or attempt > self.retry_attempts:
                    raise LookupTransportError(query, str(exc)) from exc
                await asyncio.sleep(self.retry_delay_seconds)


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= httpx.codes.INTERNAL_SERVER_ERROR
    return False


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


# Nutritionix attr_id values inside full_nutrients.
_FULL_NUTRIENT_IDS = {"vitamin_c": 401, "calcium": 301, "iron": 303}


def parse_food(food: dict[str, object]) -> NutritionRecord:
    """Convert a lookup payload entry into a record with no missing values."""
    full = _full_nutrients(food.get("full_nutrients"))
    return NutritionRecord(
        name=str(food.get("food_name") or ""),
        serving_unit=str(food.get("serving_unit") or "serving"),
        serving_grams=_to_float(food.get("serving_weight_grams")),
        calories=_to_float(food.get("nf_calories")),
        protein_g=_to_float(food.get("nf_protein")),
        fat_g=_to_float(food.get("nf_total_fat")),
        saturated_fat_g=_to_float(food.get("nf_saturated_fat")),
        carbs_g=_to_float(food.get("nf_total_carbohydrate")),
        fiber_g=_to_float(food.get("nf_dietary_fiber")),
        sugar_g=_to_float(food.get("nf_sugars")),
        sodium_mg=_to_float(food.get("nf_sodium")),
        cholesterol_mg=_to_float(food.get("nf_cholesterol")),
        potassium_mg=_to_float(food.get("nf_potassium")),
        vitamin_c_mg=_to_float(
            food.get("nf_vitamin_c", full.get(_FULL_NUTRIENT_IDS["vitamin_c"]))
        ),
        calcium_mg=_to_float(
            food.get("nf_calcium", full.get(_FULL_NUTRIENT_IDS["calcium"]))
        ),
        iron_mg=_to_float(food.get("nf_iron", full.get(_FULL_NUTRIENT_IDS["iron"]))),
    )


def _full_nutrients(raw: object) -> dict[int, float]:
    values: dict[int, float] = {}
    if not isinstance(raw, list):
        return values
    for nutrient in raw:
        if not isinstance(nutrient, dict):
            continue
        attr_id = nutrient.get("attr_id")
        value = nutrient.get("value")
        if isinstance(attr_id, int) and value is not None:
            values[attr_id] = _to_float(value)
    return values


def _to_float(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return _to_float(value)
