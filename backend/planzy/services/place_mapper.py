"""Explicit conversions from Tripadvisor payloads to planner models.

Every function validates the fields it needs and raises ``PlaceMappingError``
for payloads it cannot use. Optional fields fall back to fixed defaults:
rating 0.0, review count 0, empty address.
"""

from __future__ import annotations

from typing import Any, Mapping

from planzy.models.schemas import (
    CandidatePlace,
    ContactInfo,
    GeoLocation,
    SearchResultStub,
)
from planzy.services.errors import PlaceMappingError
from pydantic import ValidationError

PHOTO_SIZE_PREFERENCE = ("large", "medium", "original")


def _as_mapping(value: Any, *, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise PlaceMappingError(f"{what} must be an object")
    return value


def _data_items(payload: Any, *, what: str) -> list[Any]:
    body = _as_mapping(payload, what=what)
    items = body.get("data")
    if items is None:
        return []
    if not isinstance(items, list):
        raise PlaceMappingError(f"{what}.data must be a list")
    return items


def _required_str(item: Mapping[str, Any], key: str, *, what: str) -> str:
    value = item.get(key)
    if value is None or str(value).strip() == "":
        raise PlaceMappingError(f"{what} is missing {key}")
    return str(value)


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _image_url(images: Any) -> str | None:
    if not isinstance(images, Mapping):
        return None
    for size in PHOTO_SIZE_PREFERENCE:
        candidate = images.get(size)
        if isinstance(candidate, Mapping) and candidate.get("url"):
            return str(candidate["url"])
    return None


def to_search_results(payload: Any) -> list[SearchResultStub]:
    results: list[SearchResultStub] = []
    for raw in _data_items(payload, what="search response"):
        item = _as_mapping(raw, what="search result")
        location_id = _required_str(item, "location_id", what="search result")
        try:
            stub = SearchResultStub(
                location_id=location_id,
                name=str(item.get("name") or ""),
                rating=_optional_float(item.get("rating")),
                num_reviews=_optional_int(item.get("num_reviews")),
            )
        except ValidationError as exc:
            raise PlaceMappingError(f"search result {location_id} is invalid") from exc
        results.append(stub)
    return results


def to_candidate_place(payload: Any) -> CandidatePlace:
    item = _as_mapping(payload, what="location details")
    location_id = _required_str(item, "location_id", what="location details")
    name = _required_str(item, "name", what="location details")
    try:
        return _build_candidate(item, location_id, name)
    except ValidationError as exc:
        raise PlaceMappingError(f"location {location_id} is invalid") from exc


def _build_candidate(
    item: Mapping[str, Any], location_id: str, name: str
) -> CandidatePlace:
    address = item.get("address_obj")
    category = item.get("category")
    photo = item.get("photo")
    rating = _optional_float(item.get("rating"))
    reviews = _optional_int(item.get("num_reviews"))
    return CandidatePlace(
        id=location_id,
        name=name,
        location=GeoLocation(
            latitude=_optional_float(item.get("latitude")),
            longitude=_optional_float(item.get("longitude")),
            address=(
                str(address.get("address_string") or "")
                if isinstance(address, Mapping)
                else ""
            ),
        ),
        rating=rating if rating is not None else 0.0,
        reviews_count=reviews if reviews is not None else 0,
        description=item.get("description") or None,
        photo_url=_image_url(photo.get("images")) if isinstance(photo, Mapping) else None,
        category=(
            category.get("localized_name") if isinstance(category, Mapping) else None
        ),
        contact=ContactInfo(phone=item.get("phone"), website=item.get("website")),
    )


def to_photo_urls(payload: Any) -> list[str]:
    urls: list[str] = []
    for raw in _data_items(payload, what="photos response"):
        if not isinstance(raw, Mapping):
            continue
        url = _image_url(raw.get("images"))
        if url:
            urls.append(url)
    return urls


def format_lat_long(latitude: float, longitude: float) -> str:
    return f"{latitude},{longitude}"
