# tests/test_opportunity_service.py
from datetime import datetime

import pytest
from fastapi import HTTPException

from donation_finder.models.dto import (
    Coordinate,
    OpportunityCategory,
    OpportunityDraft,
    PlaceSearchFailure,
    PlaceSearchSuccess,
    RawPlace,
)
from donation_finder.services.opportunity_service import OpportunityService, suggest_addresses

MISSION_DISTRICT = Coordinate(lat=37.7599, lon=-122.4148)

def valid_draft(**overrides) -> OpportunityDraft:
    fields = dict(
        title="Pantry Restock",
        organization="Mission Neighborhood Centers",
        category=OpportunityCategory.FOOD_SERVICE,
        address="362 Capp St, San Francisco, CA 94110",
        coordinate=Coordinate(lat=37.7627, lon=-122.4180),
        description="Restock shelves before the afternoon distribution.",
        time_commitment="2 hours",
        requirements=["Closed-toe shoes", "", "Ages 16+"],
        contact_email="",
        contact_phone="(415) 555-0134",
        start_date=datetime(2026, 11, 1),
        start_time=datetime(2026, 11, 1, 13, 0),
        end_time=datetime(2026, 11, 1, 15, 0),
    )
    fields.update(overrides)
    return OpportunityDraft(**fields)

@pytest.fixture(scope="module")
def service():
    return OpportunityService()

def test_bundled_catalog_loads(service):
    assert len(service.opportunities) == 9
    assert {o.category for o in service.opportunities} == set(OpportunityCategory)

def test_missing_catalog_file_yields_empty_list(tmp_path):
    assert OpportunityService(file_path=str(tmp_path / "nope.json")).opportunities == []

def test_invalid_catalog_file_yields_empty_list(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text('{"opportunities": [{"title": "no other fields"}]}', encoding="utf-8")
    assert OpportunityService(file_path=str(broken)).opportunities == []

def test_search_for_food_finds_listing_by_category_label(service):
    titles = [o.title for o in service.search(search_text="food")]
    # Title, organization and description never mention food; only the category does.
    assert "Weekend Meal Prep Crew" in titles
    assert titles == sorted(titles)

def test_search_near_location_sorts_by_distance(service):
    results = service.search(radius_miles=25, location=MISSION_DISTRICT)
    distances = [o.distance_miles(MISSION_DISTRICT) for o in results]
    assert results
    assert distances == sorted(distances)
    assert all(d <= 25 for d in distances)
    assert "Pantry Distribution Helper" not in [o.title for o in results]

def test_search_by_category(service):
    results = service.search(categories=[OpportunityCategory.ELDER_CARE], radius_miles=100)
    assert [o.title for o in results] == ["Friendly Visitor Program"]

def test_submit_builds_opportunity(service):
    opportunity = service.submit(valid_draft())

    assert opportunity.requirements == ["Closed-toe shoes", "Ages 16+"]
    assert opportunity.contact_email is None
    assert opportunity.contact_phone == "(415) 555-0134"
    assert opportunity.is_ongoing is True
    assert (opportunity.lat, opportunity.lon) == (37.7627, -122.4180)
    assert opportunity.end_date == datetime(2026, 11, 1, 15, 0)

def test_submit_is_not_added_to_catalog(service):
    before = list(service.opportunities)
    service.submit(valid_draft())
    assert service.opportunities == before

def test_submit_drops_end_time_not_after_start(service):
    draft = valid_draft(end_time=datetime(2026, 11, 1, 12, 0))
    assert service.submit(draft).end_date is None

@pytest.mark.parametrize("field", ["title", "organization", "description", "time_commitment"])
def test_submit_requires_field(service, field):
    with pytest.raises(HTTPException) as exc_info:
        service.submit(valid_draft(**{field: "  "}))

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail["error"] == "INVALID_OPPORTUNITY"
    assert field in exc_info.value.detail["detail"]

def test_submit_requires_resolved_address(service):
    with pytest.raises(HTTPException) as exc_info:
        service.submit(valid_draft(coordinate=None))

    assert exc_info.value.detail["error"] == "ADDRESS_NOT_RESOLVED"

class FakeAddressLookup:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def search_addresses(self, query, near=None):
        self.calls.append((query, near))
        return self.result

@pytest.mark.asyncio
async def test_address_suggestion_fills_a_submittable_draft(service):
    lookup = FakeAddressLookup(
        PlaceSearchSuccess(
            places=[
                RawPlace(name="Capp Street", formatted_address="362 Capp St, San Francisco, CA 94110", lat=37.7627, lon=-122.418),
                RawPlace(name="No address", lat=37.0, lon=-122.0),
            ]
        )
    )

    suggestions = await suggest_addresses(lookup, "362 capp", MISSION_DISTRICT)

    assert lookup.calls == [("362 capp", MISSION_DISTRICT)]
    assert [s.address for s in suggestions] == ["362 Capp St, San Francisco, CA 94110"]
    chosen = suggestions[0]
    opportunity = service.submit(valid_draft(address=chosen.address, coordinate=chosen.coordinate))
    assert (opportunity.lat, opportunity.lon) == (37.7627, -122.418)

@pytest.mark.asyncio
async def test_blank_address_query_has_no_suggestions():
    lookup = FakeAddressLookup(PlaceSearchSuccess())
    assert await suggest_addresses(lookup, "   ") == []
    assert lookup.calls == []

@pytest.mark.asyncio
async def test_address_lookup_failure_is_unavailable():
    lookup = FakeAddressLookup(PlaceSearchFailure(error="PROVIDER_TIMEOUT", detail="slow"))

    with pytest.raises(HTTPException) as exc_info:
        await suggest_addresses(lookup, "362 capp")

    assert exc_info.value.status_code == 503
    assert exc_info.value.detail["error"] == "ADDRESS_LOOKUP_UNAVAILABLE"
