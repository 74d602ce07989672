# donation_finder/services/profile.py
# Name + Gmail address stored in local key-value storage.

import logging
import re
from typing import Optional

from fastapi import HTTPException, status

from donation_finder.models.dto import ErrorResponse, Profile
from donation_finder.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

GMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@gmail\.com$")

FULL_NAME_KEY = "profile:full_name"
EMAIL_KEY = "profile:email"
CREATED_KEY = "profile:created"

def is_valid_gmail(email: str) -> bool:
    return bool(GMAIL_PATTERN.match(email))

class ProfileService:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def create(self, full_name: str, email: str) -> Profile:
        """
        Validates and stores the profile.

        Raises:
            HTTPException: 400 when the name is blank or the address is not a Gmail address.
        """
        full_name = full_name.strip()
        email = email.strip()
        if not full_name or not is_valid_gmail(email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=ErrorResponse(
                    error="INVALID_PROFILE",
                    detail="Please fill in all fields with valid information."
                ).model_dump()
            )

        await self.store.set(FULL_NAME_KEY, full_name)
        await self.store.set(EMAIL_KEY, email)
        await self.store.set(CREATED_KEY, "1")
        logger.info("Profile saved.")
        return Profile(full_name=full_name, email=email)

    async def get(self) -> Optional[Profile]:
        if await self.store.get(CREATED_KEY) != "1":
            return None
        full_name = await self.store.get(FULL_NAME_KEY)
        email = await self.store.get(EMAIL_KEY)
        if full_name is None or email is None:
            return None
        return Profile(full_name=full_name, email=email)
