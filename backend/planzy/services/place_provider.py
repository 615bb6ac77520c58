from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from typing import Any

import httpx
from planzy.core.cache import CacheBackend, build_cache_key, cache_backend
from planzy.core.logging import get_logger
from planzy.core.settings import settings
from planzy.models.schemas import (
    CandidatePlace,
    ContactInfo,
    GeoLocation,
    PlaceCategory,
    SearchResultStub,
)
from planzy.services import place_mapper
from planzy.services.errors import ProviderError

TRIPADVISOR_CACHE_NS = "tripadvisor"


@dataclass
class LookupMetrics:
    api_calls: int = 0
    api_failures: int = 0
    cache_hits: int = 0

    def snapshot(self) -> dict[str, int]:
        return {
            "api_calls": self.api_calls,
            "api_failures": self.api_failures,
            "cache_hits": self.cache_hits,
        }


class PlaceProvider:
    """Remote places lookups. Every call may raise ``ProviderError``."""

    name = "base"

    async def search_by_text(
        self,
        query: str,
        lat_long: str | None = None,
        radius: int | None = None,
    ) -> list[SearchResultStub]:
        raise NotImplementedError

    async def get_details(self, location_id: str) -> CandidatePlace | None:
        raise NotImplementedError

    async def search_nearby(
        self,
        lat_long: str,
        category: PlaceCategory,
        sub_filter: str | None,
        limit: int,
    ) -> list[SearchResultStub]:
        raise NotImplementedError

    async def get_photos(self, location_id: str) -> list[str]:
        raise NotImplementedError


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "place"


def _pseudo_coordinates(seed: str) -> tuple[float, float]:
    digest = hashlib.md5(seed.encode("utf-8")).hexdigest()
    lat = -60.0 + (int(digest[:8], 16) % 12000) / 100.0
    lng = -180.0 + (int(digest[8:16], 16) % 36000) / 100.0
    return round(lat, 5), round(lng, 5)


class MockPlaceProvider(PlaceProvider):
    """Deterministic offline provider used in tests and without an API key."""

    name = "mock"
    MAX_RESULTS = 10

    async def search_by_text(
        self,
        query: str,
        lat_long: str | None = None,
        radius: int | None = None,
    ) -> list[SearchResultStub]:
        text = query.strip()
        if not text:
            return []
        return [SearchResultStub(location_id=f"geo-{_slug(text)}", name=text)]

    async def get_details(self, location_id: str) -> CandidatePlace | None:
        if not location_id:
            return None
        lat, lng = _pseudo_coordinates(location_id)
        name = location_id.replace("-", " ").title()
        return CandidatePlace(
            id=location_id,
            name=name,
            location=GeoLocation(
                latitude=lat, longitude=lng, address=f"{name} Street 1"
            ),
            rating=4.0,
            reviews_count=len(location_id) * 7,
            description=f"Mock details for {name}",
            photo_url=None,
            category=location_id.split("-", 1)[0],
            contact=ContactInfo(phone=None, website=None),
        )

    async def search_nearby(
        self,
        lat_long: str,
        category: PlaceCategory,
        sub_filter: str | None,
        limit: int,
    ) -> list[SearchResultStub]:
        prefix = category.value
        if sub_filter:
            prefix = f"{prefix}-{_slug(sub_filter)}"
        return [
            SearchResultStub(
                location_id=f"{prefix}-{idx}",
                name=f"Mock {category.value.title()} {idx + 1}",
                rating=round(4.5 - idx * 0.1, 2),
            )
            for idx in range(min(max(limit, 0), self.MAX_RESULTS))
        ]

    async def get_photos(self, location_id: str) -> list[str]:
        return [f"https://photos.example.com/{location_id}/large.jpg"]


class TripadvisorPlaceProvider(PlaceProvider):
    """Tripadvisor Content API client built on httpx."""

    name = "tripadvisor"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        language: str | None = None,
        timeout_s: float | None = None,
        radius_unit: str | None = None,
        cache: CacheBackend | None = None,
        cache_ttl_seconds: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = (base_url or settings.tripadvisor_base_url).rstrip("/")
        self._language = language or settings.tripadvisor_language
        self._timeout = httpx.Timeout(timeout_s or settings.tripadvisor_timeout_s)
        self._radius_unit = radius_unit or settings.tripadvisor_radius_unit
        self._cache = cache
        self._cache_ttl = cache_ttl_seconds or settings.tripadvisor_cache_ttl_seconds
        self._transport = transport
        self._metrics = LookupMetrics()
        self._logger = get_logger(__name__)

    async def _get_json(
        self,
        operation: str,
        path: str,
        params: dict[str, Any],
        *,
        allow_not_found: bool = False,
    ) -> Any | None:
        query = {"key": self._api_key}
        query.update({k: v for k, v in params.items() if v is not None})
        self._metrics.api_calls += 1
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={"accept": "application/json"},
                transport=self._transport,
            ) as client:
                resp = await client.get(path, params=query)
        except httpx.HTTPError as exc:
            self._metrics.api_failures += 1
            self._logger.warning(
                "tripadvisor.request.failed",
                extra={"operation": operation, "path": path, "error": str(exc)},
            )
            raise ProviderError(
                f"{operation} request failed: {exc}", operation=operation
            ) from exc

        if allow_not_found and resp.status_code == 404:
            return None
        if not resp.is_success:
            self._metrics.api_failures += 1
            reason = "rate limited" if resp.status_code == 429 else "bad status"
            self._logger.warning(
                "tripadvisor.status.failed",
                extra={
                    "operation": operation,
                    "path": path,
                    "status_code": resp.status_code,
                },
            )
            raise ProviderError(
                f"{operation} {reason}: HTTP {resp.status_code}",
                operation=operation,
                status_code=resp.status_code,
            )
        try:
            payload = resp.json()
        except ValueError as exc:
            self._metrics.api_failures += 1
            raise ProviderError(
                f"{operation} returned invalid JSON", operation=operation
            ) from exc
        if isinstance(payload, dict) and payload.get("error"):
            self._metrics.api_failures += 1
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderError(
                f"{operation} failed: {message}", operation=operation
            )
        return payload

    async def _remember(self, key: str, loader):
        if self._cache is None:
            return await loader()
        loaded = False

        async def _load():
            nonlocal loaded
            loaded = True
            return await loader()

        value = await self._cache.remember_async(
            TRIPADVISOR_CACHE_NS, key, self._cache_ttl, _load
        )
        if not loaded:
            self._metrics.cache_hits += 1
        return value

    async def search_by_text(
        self,
        query: str,
        lat_long: str | None = None,
        radius: int | None = None,
    ) -> list[SearchResultStub]:
        async def _load() -> list[SearchResultStub]:
            payload = await self._get_json(
                "search_by_text",
                "/location/search",
                {
                    "searchQuery": query,
                    "language": self._language,
                    "latLong": lat_long,
                    "radius": radius,
                    "radiusUnit": self._radius_unit if radius else None,
                },
            )
            return place_mapper.to_search_results(payload)

        key = build_cache_key(
            "search", query=query, lat_long=lat_long, radius=radius
        )
        return await self._remember(key, _load)

    async def get_details(self, location_id: str) -> CandidatePlace | None:
        async def _load() -> CandidatePlace | None:
            payload = await self._get_json(
                "get_details",
                f"/location/{location_id}/details",
                {"language": self._language},
                allow_not_found=True,
            )
            if payload is None:
                return None
            return place_mapper.to_candidate_place(payload)

        key = build_cache_key("details", location_id, lang=self._language)
        return await self._remember(key, _load)

    async def search_nearby(
        self,
        lat_long: str,
        category: PlaceCategory,
        sub_filter: str | None,
        limit: int,
    ) -> list[SearchResultStub]:
        # nearby_search has no free-text filter, refinements go through search
        if sub_filter:
            payload = await self._get_json(
                "search_nearby",
                "/location/search",
                {
                    "searchQuery": sub_filter,
                    "category": category.value,
                    "latLong": lat_long,
                    "language": self._language,
                },
            )
        else:
            payload = await self._get_json(
                "search_nearby",
                "/location/nearby_search",
                {
                    "latLong": lat_long,
                    "category": category.value,
                    "language": self._language,
                },
            )
        return place_mapper.to_search_results(payload)[: max(limit, 0)]

    async def get_photos(self, location_id: str) -> list[str]:
        payload = await self._get_json(
            "get_photos",
            f"/location/{location_id}/photos",
            {"language": self._language},
        )
        return place_mapper.to_photo_urls(payload)

    def metrics_snapshot(self) -> dict[str, int]:
        return self._metrics.snapshot()


def build_place_provider(provider_name: str | None = None) -> PlaceProvider:
    name = provider_name or settings.place_provider
    if name == "tripadvisor":
        if settings.tripadvisor_api_key:
            return TripadvisorPlaceProvider(
                settings.tripadvisor_api_key,
                cache=cache_backend if settings.tripadvisor_cache_enabled else None,
            )
        get_logger(__name__).warning(
            "place_provider.missing_key", extra={"provider": name}
        )
    return MockPlaceProvider()


_place_provider: PlaceProvider | None = None


def get_place_provider() -> PlaceProvider:
    global _place_provider
    if _place_provider is None:
        _place_provider = build_place_provider()
    return _place_provider


def reset_place_provider() -> None:
    global _place_provider
    _place_provider = None
