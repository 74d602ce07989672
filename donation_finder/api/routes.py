# donation_finder/api/routes.py
# HTTP handlers standing in for the app's list, map, favorites and account views.

from fastapi import APIRouter, Request, HTTPException, Query, status
import logging
from itertools import chain
from typing import List, Optional
from uuid import UUID

from donation_finder.core.config import settings
from donation_finder.models.dto import (
    AddressSuggestion,
    Coordinate,
    DiscoveryState,
    ErrorResponse,
    FacilitiesResponse,
    FacilityCategory,
    FavoritesResponse,
    FindFacilitiesRequest,
    LocationUpdate,
    LocationUpdateRequest,
    Opportunity,
    OpportunityCategory,
    OpportunityDraft,
    Profile,
)
from donation_finder.services.discovery import DiscoveryService
from donation_finder.services.facility_catalog import SampleFacilityCatalog
from donation_finder.services.favorites import FavoritesService
from donation_finder.services.filters import filter_facilities
from donation_finder.services.location import DiscoveryTrigger, LocationProvider
from donation_finder.services.opportunity_service import OpportunityService, suggest_addresses
from donation_finder.services.profile import ProfileService

router = APIRouter()
logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _optional_location(lat: Optional[float], lon: Optional[float]) -> Optional[Coordinate]:
    if lat is None and lon is None:
        return None
    if lat is None or lon is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=ErrorResponse(
                error="INCOMPLETE_LOCATION",
                detail="Provide both lat and lon, or neither.",
            ).model_dump(),
        )
    return Coordinate(lat=lat, lon=lon)

def _facilities_response(
    state: DiscoveryState,
    categories: Optional[List[FacilityCategory]],
    radius_miles: Optional[float],
    location: Optional[Coordinate],
) -> FacilitiesResponse:
    selected = set(categories) if categories else set(FacilityCategory)
    if radius_miles is None:
        radius_miles = state.radius_miles if state.radius_miles is not None else settings.DEFAULT_RADIUS_MILES
    facilities = filter_facilities(
        state.facilities,
        selected,
        radius_miles,
        location or state.location,
    )
    return FacilitiesResponse(
        facilities=facilities,
        is_loading=state.is_loading,
        error_message=state.error_message,
        generation=state.generation,
    )

# ----------------------------------------------------------------------
# Facilities
# ----------------------------------------------------------------------
@router.post("/facilities/search", response_model=FacilitiesResponse)
async def search_facilities(request: Request, data: FindFacilitiesRequest):
    """Run a discovery pass around the given point and return the filtered result."""
    discovery: DiscoveryService = request.app.state.discovery
    location = Coordinate(lat=data.lat, lon=data.lon)
    await discovery.find_facilities(location, data.radius_miles)
    return _facilities_response(discovery.state, data.categories, data.radius_miles, location)

@router.get("/facilities", response_model=FacilitiesResponse)
async def list_facilities(
    request: Request,
    categories: Optional[List[FacilityCategory]] = Query(None),
    radius_miles: Optional[float] = Query(None, gt=0),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
):
    """Current published discovery state, filtered for display."""
    discovery: DiscoveryService = request.app.state.discovery
    location = _optional_location(lat, lon)
    return _facilities_response(discovery.state, categories, radius_miles, location)

# ----------------------------------------------------------------------
# Location
# ----------------------------------------------------------------------
@router.post("/location", response_model=LocationUpdate, status_code=status.HTTP_202_ACCEPTED)
async def update_location(request: Request, data: LocationUpdateRequest):
    """Publish a device location update; the first fix starts discovery in the background."""
    locations: LocationProvider = request.app.state.locations
    locations.publish(
        LocationUpdate(
            coordinate=_optional_location(data.lat, data.lon),
            permission=data.permission,
        )
    )
    return locations.current

@router.post(
    "/location/refresh",
    response_model=FacilitiesResponse,
    responses={409: {"model": ErrorResponse}},
)
async def refresh_location(request: Request, radius_miles: Optional[float] = Query(None, gt=0)):
    trigger: DiscoveryTrigger = request.app.state.trigger
    result = await trigger.refresh(radius_miles)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=ErrorResponse(
                error="NO_LOCATION",
                detail="Location is not available yet. Enable location access and try again.",
            ).model_dump(),
        )
    discovery: DiscoveryService = request.app.state.discovery
    return _facilities_response(discovery.state, None, radius_miles, None)

# ----------------------------------------------------------------------
# Volunteering opportunities
# ----------------------------------------------------------------------
@router.get("/opportunities", response_model=List[Opportunity])
async def list_opportunities(
    request: Request,
    categories: Optional[List[OpportunityCategory]] = Query(None),
    q: str = Query("", description="Free-text search over title, organization, description and category."),
    radius_miles: Optional[float] = Query(None, gt=0),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
):
    service: OpportunityService = request.app.state.opportunities
    return service.search(categories, q.strip(), radius_miles, _optional_location(lat, lon))

@router.post(
    "/opportunities",
    response_model=Opportunity,
    status_code=status.HTTP_202_ACCEPTED,
    responses={400: {"model": ErrorResponse}},
)
async def submit_opportunity(request: Request, draft: OpportunityDraft):
    """Validate a submitted listing and echo it back. Nothing is stored."""
    service: OpportunityService = request.app.state.opportunities
    return service.submit(draft)

@router.get(
    "/addresses",
    response_model=List[AddressSuggestion],
    responses={503: {"model": ErrorResponse}},
)
async def search_addresses(
    request: Request,
    q: str = Query("", description="Partial street address."),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
):
    """Address suggestions for the opportunity form; pick one to fill `address` and `coordinate`."""
    return await suggest_addresses(request.app.state.addresses, q, _optional_location(lat, lon))

# ----------------------------------------------------------------------
# Favorites
# ----------------------------------------------------------------------
@router.get("/favorites", response_model=FavoritesResponse)
async def list_favorites(request: Request):
    favorites: FavoritesService = request.app.state.favorites
    catalog: SampleFacilityCatalog = request.app.state.catalog
    discovery: DiscoveryService = request.app.state.discovery
    ids = await favorites.ids()
    facilities = await favorites.resolve(chain(catalog.facilities, discovery.state.facilities))
    return FavoritesResponse(ids=sorted(ids, key=str), facilities=facilities)

@router.put("/favorites/{facility_id}", response_model=FavoritesResponse)
async def add_favorite(request: Request, facility_id: UUID):
    favorites: FavoritesService = request.app.state.favorites
    await favorites.add(facility_id)
    return await list_favorites(request)

@router.delete("/favorites/{facility_id}", response_model=FavoritesResponse)
async def remove_favorite(request: Request, facility_id: UUID):
    favorites: FavoritesService = request.app.state.favorites
    await favorites.remove(facility_id)
    return await list_favorites(request)

@router.post("/favorites/{facility_id}/toggle")
async def toggle_favorite(request: Request, facility_id: UUID):
    favorites: FavoritesService = request.app.state.favorites
    return {"id": str(facility_id), "favorite": await favorites.toggle(facility_id)}

# ----------------------------------------------------------------------
# Profile
# ----------------------------------------------------------------------
@router.get("/profile", response_model=Profile, responses={404: {"model": ErrorResponse}})
async def get_profile(request: Request):
    profiles: ProfileService = request.app.state.profile
    profile = await profiles.get()
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ErrorResponse(
                error="NO_PROFILE",
                detail="No profile has been created yet.",
            ).model_dump(),
        )
    return profile

@router.put("/profile", response_model=Profile, responses={400: {"model": ErrorResponse}})
async def put_profile(request: Request, data: Profile):
    profiles: ProfileService = request.app.state.profile
    return await profiles.create(data.full_name, data.email)
