from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from planzy.core.settings import settings
from planzy.models.schemas import CategoryQuotas, TravelIntent
from planzy.services.errors import IntentError

DESTINATION_PATTERN = re.compile(r"\b(?:in|to|at)\b\s+([A-Z][a-z]+)", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"\d+")
WORD_SPLIT_PATTERN = re.compile(r"\W+")


class IntentResolver(Protocol):
    def parse(self, text: str) -> TravelIntent: ...


@dataclass(frozen=True)
class PreferencePattern:
    avg_restaurants_per_day: float = 2.0
    avg_attractions_per_day: float = 2.0
    avg_nightlife_per_day: float = 0.0
    category_filter: str | None = None


THEME_KEYWORDS: dict[str, dict[str, int]] = {
    "historical": {"history": 10, "museum": 8, "historical": 10},
    "beach": {"beach": 10, "sea": 10, "ocean": 5},
    "nightlife": {"nightlife": 10, "party": 10, "club": 10, "bar": 10},
}

THEME_PATTERNS: dict[str, PreferencePattern] = {
    "historical": PreferencePattern(2.0, 2.0, 0.0, "historical_sites"),
    "beach": PreferencePattern(2.0, 1.0, 0.5, "beaches"),
    "nightlife": PreferencePattern(2.0, 1.0, 2.0, "nightlife"),
}


class KeywordIntentResolver:
    """Rule based intent extraction: destination, duration, theme and quotas."""

    def __init__(
        self,
        *,
        default_duration_days: int | None = None,
        theme_keywords: dict[str, dict[str, int]] | None = None,
        theme_patterns: dict[str, PreferencePattern] | None = None,
    ) -> None:
        self._default_duration = max(
            int(default_duration_days or settings.planner_default_duration_days), 1
        )
        self._theme_keywords = theme_keywords or THEME_KEYWORDS
        self._theme_patterns = theme_patterns or THEME_PATTERNS

    def parse(self, text: str) -> TravelIntent:
        message = (text or "").strip()
        if not message:
            raise IntentError("request text is empty")

        destination = self._extract_destination(message)
        if destination is None:
            raise IntentError()
        duration = self._extract_duration(message)
        theme = self.classify_theme(message)
        lowered = message.lower()
        explicit_nightlife = (
            theme == "nightlife" or "night" in lowered or "bar" in lowered
        )
        return TravelIntent(
            destination=destination,
            duration_days=duration,
            theme=theme,
            preferences=self.build_preferences(theme, duration, explicit_nightlife),
        )

    @staticmethod
    def _extract_destination(text: str) -> str | None:
        for match in DESTINATION_PATTERN.finditer(text):
            candidate = match.group(1)
            if candidate[0].isupper():
                return candidate
        return None

    def _extract_duration(self, text: str) -> int:
        for raw in NUMBER_PATTERN.findall(text):
            value = int(raw)
            if 1 <= value <= 30:
                return value
        return self._default_duration

    def classify_theme(self, text: str) -> str | None:
        words = [word for word in WORD_SPLIT_PATTERN.split(text.lower()) if word]
        best_theme: str | None = None
        best_score = 0
        for theme, weights in self._theme_keywords.items():
            score = sum(weights.get(word, 0) for word in words)
            if score > best_score:
                best_theme, best_score = theme, score
        return best_theme

    def build_preferences(
        self, theme: str | None, days: int, explicit_nightlife: bool
    ) -> CategoryQuotas:
        pattern = self._theme_patterns.get(theme or "", PreferencePattern())
        nightlife = 0
        if explicit_nightlife:
            per_day = pattern.avg_nightlife_per_day
            nightlife = max(int(per_day * days) if per_day > 0 else days, 1)
        return CategoryQuotas(
            hotel_count=1,
            restaurant_count=max(int(pattern.avg_restaurants_per_day * days), 1),
            attraction_count=max(int(pattern.avg_attractions_per_day * days), 1),
            nightlife_count=nightlife,
            category_filter=pattern.category_filter,
        )
