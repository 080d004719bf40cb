"""
Shared-secret access gate.

Two passphrases separate the owner (may download and manage) from guests
(view only). This only tells the front end which role to show; the API
itself does not enforce roles.
"""
import secrets
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel
from typing import Optional

from galeria.core.config import settings

router = APIRouter()

ROLE_OWNER = "owner"
ROLE_GUEST = "guest"


# Pydantic schemas
class SessionRequest(BaseModel):
    passphrase: str

    class Config:
        json_schema_extra = {
            "example": {"passphrase": "correct horse battery staple"}
        }


class SessionResponse(BaseModel):
    role: str
    can_download: bool


def resolve_role(passphrase: str, owner_passphrase: str, guest_passphrase: str) -> Optional[str]:
    """Return the role a passphrase unlocks, or None. Unset passphrases never match."""
    candidate = (passphrase or "").encode()
    if owner_passphrase and secrets.compare_digest(candidate, owner_passphrase.encode()):
        return ROLE_OWNER
    if guest_passphrase and secrets.compare_digest(candidate, guest_passphrase.encode()):
        return ROLE_GUEST
    return None


@router.post("", response_model=SessionResponse)
async def open_session(request: SessionRequest):
    """Resolve a passphrase to the owner or guest role."""
    role = resolve_role(request.passphrase, settings.OWNER_PASSPHRASE, settings.GUEST_PASSPHRASE)
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid passphrase"
        )
    return SessionResponse(role=role, can_download=role == ROLE_OWNER)
