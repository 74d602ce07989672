from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from donation_finder.utils.haversine import haversine_miles

# --- Geography ---

class Coordinate(BaseModel):
    """A WGS84 point."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, description="Latitude.")
    lon: float = Field(..., ge=-180, le=180, description="Longitude.")

    def distance_miles(self, other: "Coordinate") -> float:
        return haversine_miles(self.lat, self.lon, other.lat, other.lon)

# --- Facilities (discovery results) ---

class FacilityCategory(str, Enum):
    # Declaration order is the order categories are searched in.
    FOOD_BANK = "Food Bank"
    HOMELESS_SHELTER = "Homeless Shelter"
    RECYCLING_CENTER = "Recycling Center"
    COMPOST_FACILITY = "Compost Facility"

class Facility(BaseModel):
    """A discovered donation or service location."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Minted per search result; not stable across searches.")
    name: str
    address: str
    category: FacilityCategory
    lat: float
    lon: float
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: str
    accepted_items: List[str] = Field(default_factory=list)
    description: str

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)

    def distance_miles(self, origin: Coordinate) -> float:
        return haversine_miles(origin.lat, origin.lon, self.lat, self.lon)

class SampleFacilities(BaseModel):
    """Root model for the bundled donation_centers.json."""
    facilities: List[Facility]

# --- Place search provider boundary ---

class RawPlace(BaseModel):
    """One untranslated place as returned by the search provider."""
    name: Optional[str] = None
    formatted_address: Optional[str] = None
    lat: float
    lon: float
    phone: Optional[str] = None
    url: Optional[str] = None
    hours: Optional[str] = None

class PlaceSearchSuccess(BaseModel):
    ok: Literal[True] = True
    places: List[RawPlace] = Field(default_factory=list)

class PlaceSearchFailure(BaseModel):
    ok: Literal[False] = False
    error: str = Field(..., description="A machine-readable error code.")
    detail: str = Field("", description="A human-readable explanation.")
    transport: bool = Field(True, description="True when the provider could not be reached or answered with an error.")

PlaceSearchResult = Union[PlaceSearchSuccess, PlaceSearchFailure]

# --- Published discovery state ---

class DiscoveryState(BaseModel):
    """Snapshot of one discovery run, replaced as a whole on every publish."""
    model_config = ConfigDict(frozen=True)

    facilities: List[Facility] = Field(default_factory=list)
    is_loading: bool = False
    error_message: Optional[str] = None
    generation: int = 0
    location: Optional[Coordinate] = None
    radius_miles: Optional[float] = None

# --- Location ---

class LocationPermission(str, Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"

class LocationUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinate: Optional[Coordinate] = None
    permission: LocationPermission = LocationPermission.NOT_DETERMINED

# --- Volunteering opportunities ---

class OpportunityCategory(str, Enum):
    FOOD_SERVICE = "Food Service"
    SHELTER_SUPPORT = "Shelter Support"
    ENVIRONMENTAL_CLEANUP = "Environmental Cleanup"
    COMMUNITY_OUTREACH = "Community Outreach"
    EDUCATION = "Education"
    ELDER_CARE = "Elder Care"

class Opportunity(BaseModel):
    """A volunteering listing, bundled or submitted through the form."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    title: str
    organization: str
    description: str
    category: OpportunityCategory
    address: str
    lat: float
    lon: float
    time_commitment: str
    requirements: List[str] = Field(default_factory=list)
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    is_ongoing: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def distance_miles(self, origin: Optional[Coordinate]) -> float:
        """Miles from `origin`; an unknown origin is infinitely far away."""
        if origin is None:
            return float("inf")
        return haversine_miles(origin.lat, origin.lon, self.lat, self.lon)

class SampleOpportunities(BaseModel):
    """Root model for the bundled opportunities.json."""
    opportunities: List[Opportunity]

class AddressSuggestion(BaseModel):
    """A resolved street address, ready to copy into a draft."""
    address: str
    coordinate: Coordinate

class OpportunityDraft(BaseModel):
    """Fields collected by the 'add opportunity' form, before validation."""
    title: str = ""
    organization: str = ""
    category: OpportunityCategory = OpportunityCategory.COMMUNITY_OUTREACH
    address: str = ""
    coordinate: Optional[Coordinate] = Field(None, description="Set once the address has been resolved.")
    description: str = ""
    time_commitment: str = ""
    requirements: List[str] = Field(default_factory=lambda: [""])
    contact_email: str = ""
    contact_phone: str = ""
    start_date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

# --- Profile ---

class Profile(BaseModel):
    full_name: str
    email: str

# --- API Request / Response Models ---

class FindFacilitiesRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    radius_miles: Optional[float] = Field(None, gt=0, description="Defaults to DEFAULT_RADIUS_MILES.")
    categories: Optional[List[FacilityCategory]] = Field(None, description="Categories to display; all when omitted.")

class FacilitiesResponse(BaseModel):
    facilities: List[Facility]
    is_loading: bool
    error_message: Optional[str] = None
    generation: int

class LocationUpdateRequest(BaseModel):
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)
    permission: LocationPermission = LocationPermission.AUTHORIZED

class FavoritesResponse(BaseModel):
    ids: List[UUID]
    facilities: List[Facility]

# --- Error Response Model ---

class ErrorResponse(BaseModel):
    """Standardized error response model."""
    error: str = Field(..., description="A machine-readable error code.")
    detail: str = Field(..., description="A human-readable explanation.")
