from enum import Enum
from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class ClaimStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


DEFAULT_PROOF = "No additional proof provided"


class Claim(SQLModel, table=True):
    __tablename__ = "claims"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    item_id: uuid.UUID = Field(foreign_key="items.id", index=True)

    # Claimant
    claimant_id: int = Field(foreign_key="users.id", index=True)

    # Item reporter at the time of the claim
    owner_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)

    # Content
    message: str
    proof_description: str = Field(default=DEFAULT_PROOF)
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    status: ClaimStatus = Field(default=ClaimStatus.pending, index=True)

    # Resolution
    admin_response: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[int] = Field(default=None, foreign_key="users.id")


class ClaimContact(SQLModel, table=True):
    """One message sent by the item owner to a claimant. Rows are never updated."""

    __tablename__ = "claim_contacts"

    id: Optional[int] = Field(default=None, primary_key=True)
    claim_id: uuid.UUID = Field(foreign_key="claims.id", index=True)

    message: str
    sent_by: Optional[int] = Field(default=None, foreign_key="users.id")
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    email_sent: bool = Field(default=False)
