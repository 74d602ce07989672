# donation_finder/services/facility_catalog.py
# Bundled sample donation centers, loaded once at startup and never mutated.

import json
import logging
import os
from typing import Dict, List, Optional
from uuid import UUID

from donation_finder.models.dto import Facility, SampleFacilities

logger = logging.getLogger(__name__)

DEFAULT_PATH = os.path.join(os.path.dirname(__file__), "..", "static", "donation_centers.json")

class SampleFacilityCatalog:
    """In-memory copy of `static/donation_centers.json`, indexed by id."""

    def __init__(self, file_path: Optional[str] = None):
        self.file_path = file_path or DEFAULT_PATH
        self.facilities: List[Facility] = []
        self._by_id: Dict[UUID, Facility] = {}
        self._load()

    def _load(self):
        """Load and validate the sample file; an unreadable file yields an empty catalog."""
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.facilities = SampleFacilities.model_validate(data).facilities
            logger.info(f"Loaded {len(self.facilities)} sample donation centers.")
        except FileNotFoundError:
            logger.error(f"Sample donation centers not found at: {self.file_path}")
            self.facilities = []
        except Exception as e:
            logger.error(f"Error loading or validating sample donation centers: {e}")
            self.facilities = []
        self._by_id = {f.id: f for f in self.facilities}

    def get(self, facility_id: UUID) -> Optional[Facility]:
        return self._by_id.get(facility_id)
