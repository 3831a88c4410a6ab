from typing import Optional
from pydantic import BaseModel

from app.schemas.base import dump


# Fields are optional so that missing values reach the lifecycle checks
# and come back as a 400 envelope with a specific message.
class ClaimCreateRequest(BaseModel):
    message: Optional[str] = None
    proof_description: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


class ClaimRejectRequest(BaseModel):
    reason: Optional[str] = None


class ContactRequest(BaseModel):
    message: Optional[str] = None


def claim_out(claim, claimant=None, item=None) -> dict:
    data = dump(claim)

    if claimant is not None:
        data["claimant"] = {
            "public_id": claimant.public_id,
            "name": claimant.name,
            "email": claimant.email,
            "university_id": claimant.university_id,
        }

    if item is not None:
        data["item"] = dump(item, include={"id", "name", "type", "category", "status", "location"})

    return data
