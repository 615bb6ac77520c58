from __future__ import annotations

import pytest
from planzy.models.schemas import CategoryQuotas, PlaceCategory, TravelIntent
from planzy.services.errors import (
    DestinationCoordinatesMissing,
    DestinationDetailsUnavailable,
    DestinationNotFound,
)
from planzy.services.fanout_planner import BAR_SUB_FILTER, CLUB_SUB_FILTER
from planzy.services.itinerary_assembler import ItineraryAssembler, dedupe_places

from backend.tests.utils.providers import (
    FakePlaceProvider,
    make_place,
    rome_provider,
)


def _intent(
    destination: str = "Rome",
    *,
    hotels: int = 1,
    restaurants: int = 2,
    attractions: int = 1,
    nightlife: int = 0,
) -> TravelIntent:
    return TravelIntent(
        destination=destination,
        duration_days=3,
        preferences=CategoryQuotas(
            hotel_count=hotels,
            restaurant_count=restaurants,
            attraction_count=attractions,
            nightlife_count=nightlife,
        ),
    )


@pytest.mark.asyncio
async def test_rome_itinerary_follows_task_order():
    provider = rome_provider()
    itinerary = await ItineraryAssembler(provider=provider).assemble(
        _intent(), "user-1"
    )
    assert [place.id for place in itinerary.places] == ["h1", "r1", "r2", "a1"]
    assert itinerary.owner_id == "user-1"
    assert itinerary.title == "Trip to Rome"
    assert itinerary.id
    nearby = provider.calls_to("search_nearby")
    assert {call[1] for call in nearby} == {"41.9,12.5"}


@pytest.mark.asyncio
async def test_duplicates_keep_first_occurrence_in_task_order():
    provider = rome_provider(
        details=[
            make_place("geo-rome"),
            make_place("h1", "Hotel Roma"),
            make_place("r1", "Trattoria Uno"),
            make_place("x1", "Rooftop Bar"),
        ],
        nearby={
            (PlaceCategory.HOTEL, None): ["h1"],
            (PlaceCategory.ATTRACTION, BAR_SUB_FILTER): ["x1"],
            (PlaceCategory.ATTRACTION, CLUB_SUB_FILTER): ["x1"],
            (PlaceCategory.RESTAURANT, None): ["r1", "h1"],
            (PlaceCategory.ATTRACTION, None): ["x1"],
        },
    )
    itinerary = await ItineraryAssembler(provider=provider).assemble(
        _intent(nightlife=2), "user-1"
    )
    assert [place.id for place in itinerary.places] == ["h1", "x1", "r1"]
    assert itinerary.places[0].name == "Hotel Roma"


def test_dedupe_places_is_stable():
    first = make_place("a", "First")
    second = make_place("a", "Second")
    other = make_place("b")
    assert dedupe_places([first, other, second]) == [first, other]


@pytest.mark.asyncio
async def test_task_quota_limits_detail_lookups():
    provider = rome_provider(
        nearby={(PlaceCategory.RESTAURANT, None): ["r1", "r2", "r3", "r4"]},
    )
    itinerary = await ItineraryAssembler(provider=provider).assemble(
        _intent(hotels=0, restaurants=2, attractions=0), "user-1"
    )
    detail_ids = [call[1] for call in provider.calls_to("get_details")]
    assert sorted(detail_ids) == ["geo-rome", "r1", "r2"]
    assert [place.id for place in itinerary.places] == ["r1", "r2"]


@pytest.mark.asyncio
async def test_zero_quota_tasks_make_no_provider_call():
    provider = rome_provider()
    await ItineraryAssembler(provider=provider).assemble(
        _intent(hotels=0, restaurants=2, attractions=0), "user-1"
    )
    categories = [call[2] for call in provider.calls_to("search_nearby")]
    assert categories == [PlaceCategory.RESTAURANT]


@pytest.mark.asyncio
async def test_failed_detail_lookup_drops_only_that_candidate():
    provider = rome_provider(
        details=[
            make_place("geo-rome"),
            make_place("r1"),
            make_place("r3"),
        ],
        nearby={(PlaceCategory.RESTAURANT, None): ["r1", "r2", "r3"]},
        failing=[("get_details", "r2")],
    )
    itinerary = await ItineraryAssembler(provider=provider).assemble(
        _intent(hotels=0, restaurants=3, attractions=0), "user-1"
    )
    assert [place.id for place in itinerary.places] == ["r1", "r3"]


@pytest.mark.asyncio
async def test_failed_nearby_search_only_empties_that_task():
    provider = rome_provider(failing=[("search_nearby", "restaurants:")])
    itinerary = await ItineraryAssembler(provider=provider).assemble(
        _intent(), "user-1"
    )
    assert [place.id for place in itinerary.places] == ["h1", "a1"]


@pytest.mark.asyncio
async def test_missing_photo_is_filled_from_photo_lookup():
    provider = rome_provider(
        details=[
            make_place("geo-rome"),
            make_place("h1", photo_url=None),
            make_place("r1", photo_url=None),
            make_place("r2"),
            make_place("a1"),
        ],
        photos={"h1": ["https://img/h1-a.jpg", "https://img/h1-b.jpg"]},
        failing=[("get_photos", "r1")],
    )
    itinerary = await ItineraryAssembler(provider=provider).assemble(
        _intent(), "user-1"
    )
    by_id = {place.id: place for place in itinerary.places}
    assert by_id["h1"].photo_url == "https://img/h1-a.jpg"
    assert by_id["r1"].photo_url is None
    assert sorted(call[1] for call in provider.calls_to("get_photos")) == ["h1", "r1"]


@pytest.mark.asyncio
async def test_order_does_not_depend_on_completion_order():
    provider = rome_provider(delays={"h1": 0.05, "r1": 0.03})
    itinerary = await ItineraryAssembler(provider=provider, max_concurrency=8).assemble(
        _intent(), "user-1"
    )
    assert [place.id for place in itinerary.places] == ["h1", "r1", "r2", "a1"]


@pytest.mark.asyncio
async def test_empty_destination_search_aborts_before_nearby_calls():
    provider = rome_provider(destinations={})
    with pytest.raises(DestinationNotFound):
        await ItineraryAssembler(provider=provider).assemble(_intent(), "user-1")
    assert provider.calls_to("search_nearby") == []


@pytest.mark.asyncio
async def test_failing_destination_search_is_not_found():
    provider = rome_provider(failing=[("search_by_text", "Rome")])
    with pytest.raises(DestinationNotFound):
        await ItineraryAssembler(provider=provider).assemble(_intent(), "user-1")


@pytest.mark.asyncio
async def test_destination_details_failure_is_fatal():
    provider = rome_provider(failing=[("get_details", "geo-rome")])
    with pytest.raises(DestinationDetailsUnavailable):
        await ItineraryAssembler(provider=provider).assemble(_intent(), "user-1")
    assert provider.calls_to("search_nearby") == []


@pytest.mark.asyncio
async def test_destination_without_details_is_fatal():
    provider = FakePlaceProvider(destinations={"Rome": ["geo-rome"]})
    with pytest.raises(DestinationDetailsUnavailable):
        await ItineraryAssembler(provider=provider).assemble(_intent(), "user-1")


@pytest.mark.asyncio
async def test_destination_without_coordinates_is_rejected():
    provider = rome_provider(
        details=[make_place("geo-rome", latitude=None, longitude=None)]
    )
    with pytest.raises(DestinationCoordinatesMissing):
        await ItineraryAssembler(provider=provider).assemble(_intent(), "user-1")
    assert provider.calls_to("search_nearby") == []
