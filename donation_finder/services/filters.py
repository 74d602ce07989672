# donation_finder/services/filters.py
# List-view filtering applied on top of discovery results and the opportunity catalog.

from typing import Collection, Iterable, List, Optional

from donation_finder.core.config import settings
from donation_finder.models.dto import (
    Coordinate,
    Facility,
    FacilityCategory,
    Opportunity,
    OpportunityCategory,
)

def filter_facilities(
    facilities: Iterable[Facility],
    selected: Collection[FacilityCategory],
    radius_miles: float,
    location: Optional[Coordinate],
    show_all_radius_miles: Optional[float] = None,
) -> List[Facility]:
    """
    Category filter, then a radius re-filter when the radius is below the
    "show all" threshold and a location is known. Input order is kept.
    """
    if show_all_radius_miles is None:
        show_all_radius_miles = settings.FACILITY_SHOW_ALL_RADIUS_MILES

    filtered = [f for f in facilities if f.category in selected]

    if location is not None and radius_miles < show_all_radius_miles:
        filtered = [f for f in filtered if f.distance_miles(location) <= radius_miles]

    return filtered

def matches_search_text(opportunity: Opportunity, search_text: str) -> bool:
    needle = search_text.lower()
    return (
        needle in opportunity.title.lower()
        or needle in opportunity.organization.lower()
        or needle in opportunity.description.lower()
        or needle in opportunity.category.value.lower()
    )

def filter_opportunities(
    opportunities: Iterable[Opportunity],
    selected: Collection[OpportunityCategory],
    search_text: str,
    radius_miles: float,
    location: Optional[Coordinate],
    show_all_radius_miles: Optional[float] = None,
) -> List[Opportunity]:
    """
    Category -> free text -> radius -> sort.

    The radius only applies while the search box is empty and the radius is
    below the "show all" threshold; without a location every listing counts
    as out of range. Results are nearest-first when a location is known and
    no search is active, alphabetical by title otherwise.
    """
    if show_all_radius_miles is None:
        show_all_radius_miles = settings.OPPORTUNITY_SHOW_ALL_RADIUS_MILES

    searching = bool(search_text)

    results = [o for o in opportunities if o.category in selected]

    if searching:
        results = [o for o in results if matches_search_text(o, search_text)]

    if not searching and radius_miles < show_all_radius_miles:
        results = [o for o in results if o.distance_miles(location) <= radius_miles]

    if location is not None and not searching:
        return sorted(results, key=lambda o: o.distance_miles(location))
    return sorted(results, key=lambda o: o.title)
