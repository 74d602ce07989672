# donation_finder/services/opportunity_service.py
# Volunteering listings: bundled sample catalog, list filtering, and form submission.

import json
import logging
import os
from typing import Collection, List, Optional

from fastapi import HTTPException, status

from donation_finder.core.config import settings
from donation_finder.models.dto import (
    AddressSuggestion,
    Coordinate,
    ErrorResponse,
    Opportunity,
    OpportunityCategory,
    OpportunityDraft,
    SampleOpportunities,
)
from donation_finder.services.filters import filter_opportunities
from donation_finder.services.geo_search import AddressLookupProvider

logger = logging.getLogger(__name__)

DEFAULT_PATH = os.path.join(os.path.dirname(__file__), "..", "static", "opportunities.json")

class OpportunityService:
    """Service layer for volunteering opportunities.

    - Loads `opportunities.json` once; the loaded list is never mutated.
    - `search` applies the list-view filters.
    - `submit` turns a form draft into an Opportunity. Submissions are
      returned to the caller only; there is no store to write them to.
    """

    def __init__(self, file_path: Optional[str] = None):
        self.file_path = file_path or DEFAULT_PATH
        self.opportunities: List[Opportunity] = []
        self._load()

    def _load(self):
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.opportunities = SampleOpportunities.model_validate(data).opportunities
            logger.info(f"Loaded {len(self.opportunities)} sample opportunities.")
        except FileNotFoundError:
            logger.error(f"Sample opportunities not found at: {self.file_path}")
            self.opportunities = []
        except Exception as e:
            logger.error(f"Error loading or validating sample opportunities: {e}")
            self.opportunities = []

    def search(
        self,
        categories: Optional[Collection[OpportunityCategory]] = None,
        search_text: str = "",
        radius_miles: Optional[float] = None,
        location: Optional[Coordinate] = None,
    ) -> List[Opportunity]:
        if radius_miles is None:
            radius_miles = settings.DEFAULT_RADIUS_MILES
        selected = set(categories) if categories else set(OpportunityCategory)
        return filter_opportunities(self.opportunities, selected, search_text, radius_miles, location)

    def submit(self, draft: OpportunityDraft) -> Opportunity:
        """
        Validate the form and build the Opportunity it describes.

        Raises:
            HTTPException: 400 when a required field is blank or the address
            has not been resolved to a coordinate.
        """
        missing = [
            name
            for name, value in (
                ("title", draft.title),
                ("organization", draft.organization),
                ("description", draft.description),
                ("time_commitment", draft.time_commitment),
            )
            if not value.strip()
        ]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=ErrorResponse(
                    error="INVALID_OPPORTUNITY",
                    detail=f"Missing required fields: {', '.join(missing)}."
                ).model_dump()
            )

        if draft.coordinate is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=ErrorResponse(
                    error="ADDRESS_NOT_RESOLVED",
                    detail="Please select an address from the search results."
                ).model_dump()
            )

        end_date = None
        if draft.start_time and draft.end_time and draft.end_time > draft.start_time:
            end_date = draft.end_time

        opportunity = Opportunity(
            title=draft.title,
            organization=draft.organization,
            description=draft.description,
            category=draft.category,
            address=draft.address,
            lat=draft.coordinate.lat,
            lon=draft.coordinate.lon,
            time_commitment=draft.time_commitment,
            requirements=[r for r in draft.requirements if r],
            contact_email=draft.contact_email or None,
            contact_phone=draft.contact_phone or None,
            is_ongoing=True,
            start_date=draft.start_date,
            end_date=end_date,
        )

        # TODO: write submissions to a store once one exists; until then they are only logged.
        logger.info(
            f"Opportunity submitted: '{opportunity.title}' by {opportunity.organization} "
            f"({opportunity.category.value}) at {opportunity.lat}, {opportunity.lon}"
        )
        return opportunity

async def suggest_addresses(
    lookup: AddressLookupProvider,
    query: str,
    near: Optional[Coordinate] = None,
) -> List[AddressSuggestion]:
    """
    Resolve free text to street addresses for the submission form.

    A blank query has no suggestions. Any provider failure is reported as
    503 so the form can ask the user to retry.

    Raises:
        HTTPException: 503 when the address provider cannot answer.
    """
    if not query.strip():
        return []

    result = await lookup.search_addresses(query, near)
    if not result.ok:
        logger.warning(f"Address lookup for '{query}' failed: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ErrorResponse(
                error="ADDRESS_LOOKUP_UNAVAILABLE",
                detail="Address search is temporarily unavailable. Please try again."
            ).model_dump()
        )

    return [
        AddressSuggestion(address=place.formatted_address, coordinate=Coordinate(lat=place.lat, lon=place.lon))
        for place in result.places
        if place.formatted_address
    ]
