from enum import Enum
from typing import List, Optional
import uuid
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class ItemType(str, Enum):
    lost = "lost"
    found = "found"


class ItemStatus(str, Enum):
    available = "available"
    claim_pending = "claim_pending"
    returned = "returned"
    owner_deleted = "owner_deleted"


class Item(SQLModel, table=True):
    __tablename__ = "items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Reporter info, cleared when the reporter account is deleted
    user_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)

    # Item fields
    name: str
    description: str
    type: ItemType = Field(index=True)
    category: str = Field(index=True)
    status: ItemStatus = Field(default=ItemStatus.available, index=True)
    location: str
    date: datetime
    contact_email: Optional[str] = Field(default=None)
    contact_phone: Optional[str] = Field(default=None)

    # Resolution
    claimed_by: Optional[int] = Field(default=None, foreign_key="users.id")
    resolved_date: Optional[datetime] = Field(default=None)

    # Reporter snapshot
    reporter_name: Optional[str] = Field(default=None)
    reporter_email: Optional[str] = Field(default=None)
    reporter_role: Optional[str] = Field(default=None)
    reporter_university_id: Optional[str] = Field(default=None)

    # Claim stats cache, rebuilt from the claims table by services.item_stats
    total_claims: int = Field(default=0, index=True)
    pending_claims: int = Field(default=0)
    approved_claims: int = Field(default=0)
    stats_updated_at: Optional[datetime] = Field(default=None)

    # Most recent claim cache
    recent_claimant_name: Optional[str] = Field(default=None)
    recent_claimed_at: Optional[datetime] = Field(default=None)
    recent_claim_status: Optional[str] = Field(default=None)
    recent_claim_message: Optional[str] = Field(default=None)

    search_tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))


MAX_SEARCH_TAGS = 10


def build_search_tags(name: str, description: str) -> List[str]:
    tokens = f"{name or ''} {description or ''}".lower().split()

    # dict keeps first-seen order while dropping duplicates
    tags = list(dict.fromkeys(t for t in tokens if len(t) > 2))
    return tags[:MAX_SEARCH_TAGS]
