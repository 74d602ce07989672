# tests/test_filters.py
from donation_finder.models.dto import (
    Coordinate,
    Facility,
    FacilityCategory,
    Opportunity,
    OpportunityCategory,
)
from donation_finder.services.filters import filter_facilities, filter_opportunities

HOME = Coordinate(lat=40.0, lon=-74.0)
ALL_FACILITIES = set(FacilityCategory)
ALL_OPPORTUNITIES = set(OpportunityCategory)

def facility(name, category, lat, lon=-74.0):
    return Facility(
        name=name,
        address="somewhere",
        category=category,
        lat=lat,
        lon=lon,
        hours="any",
        description=name,
    )

def opportunity(title, category, lat, lon=-74.0, organization="Helpers", description="Lend a hand."):
    return Opportunity(
        title=title,
        organization=organization,
        description=description,
        category=category,
        address="somewhere",
        lat=lat,
        lon=lon,
        time_commitment="2 hours",
    )

# Roughly 0.7, 7 and 34.5 miles north of HOME.
NEAR = facility("near", FacilityCategory.FOOD_BANK, 40.01)
MIDDLE = facility("middle", FacilityCategory.RECYCLING_CENTER, 40.1)
FAR = facility("far", FacilityCategory.FOOD_BANK, 40.5)
SORTED = [NEAR, MIDDLE, FAR]

def test_category_filter_keeps_order():
    result = filter_facilities(SORTED, {FacilityCategory.FOOD_BANK}, 100, HOME, show_all_radius_miles=25)
    assert result == [NEAR, FAR]

def test_radius_refilter_applies_below_show_all_threshold():
    result = filter_facilities(SORTED, ALL_FACILITIES, 10, HOME, show_all_radius_miles=25)
    assert result == [NEAR, MIDDLE]
    assert all(f.distance_miles(HOME) <= 10 + 1e-9 for f in result)

def test_radius_at_threshold_shows_everything():
    assert filter_facilities(SORTED, ALL_FACILITIES, 25, HOME, show_all_radius_miles=25) == SORTED

def test_radius_needs_a_location():
    assert filter_facilities(SORTED, ALL_FACILITIES, 2, None, show_all_radius_miles=25) == SORTED

def test_radius_filter_never_returns_anything_outside_radius():
    grid = [facility(f"f{i}", FacilityCategory.COMPOST_FACILITY, 40.0 + i * 0.02, -74.0 + i * 0.01) for i in range(40)]
    for radius in (0.5, 1, 3, 5, 12, 20):
        result = filter_facilities(grid, ALL_FACILITIES, radius, HOME, show_all_radius_miles=25)
        assert all(f.distance_miles(HOME) <= radius + 1e-9 for f in result)
        assert len(result) == sum(1 for f in grid if f.distance_miles(HOME) <= radius)

def test_no_categories_selected_hides_everything():
    assert filter_facilities(SORTED, set(), 100, HOME) == []

# --- Opportunities ---

MEAL_PREP = opportunity(
    "Weekend Meal Prep",
    OpportunityCategory.FOOD_SERVICE,
    40.02,
    organization="Glide",
    description="Chop and plate breakfasts.",
)
BEACH = opportunity("Beach Cleanup", OpportunityCategory.ENVIRONMENTAL_CLEANUP, 40.01)
TUTOR = opportunity("After-School Tutor", OpportunityCategory.EDUCATION, 41.0)
CATALOG = [MEAL_PREP, BEACH, TUTOR]

def test_search_text_matches_category_label():
    result = filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "food", 25, HOME)
    assert result == [MEAL_PREP]

def test_search_text_is_case_insensitive_over_all_fields():
    assert filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "GLIDE", 25, HOME) == [MEAL_PREP]
    assert filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "plate", 25, HOME) == [MEAL_PREP]
    assert filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "cleanup", 25, HOME) == [BEACH]

def test_search_skips_radius_and_sorts_by_title():
    result = filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "e", 5, HOME)
    assert [o.title for o in result] == ["After-School Tutor", "Beach Cleanup", "Weekend Meal Prep"]

def test_known_location_sorts_by_distance_and_applies_radius():
    result = filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "", 25, HOME)
    assert result == [BEACH, MEAL_PREP]

def test_show_all_radius_disables_distance_filter():
    result = filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "", 100, HOME)
    assert result == [BEACH, MEAL_PREP, TUTOR]

def test_unknown_location_with_small_radius_hides_everything():
    assert filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "", 25, None) == []

def test_unknown_location_with_show_all_radius_sorts_by_title():
    result = filter_opportunities(CATALOG, ALL_OPPORTUNITIES, "", 100, None)
    assert [o.title for o in result] == ["After-School Tutor", "Beach Cleanup", "Weekend Meal Prep"]

def test_category_filter_runs_before_search():
    result = filter_opportunities(CATALOG, {OpportunityCategory.EDUCATION}, "food", 100, HOME)
    assert result == []
