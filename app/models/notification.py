from enum import Enum
from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class NotificationType(str, Enum):
    new_claim = "new_claim"
    claim_approved = "claim_approved"
    claim_rejected = "claim_rejected"
    message_received = "message_received"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    # Autoincrement id doubles as insertion order
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Ownership
    user_id: int = Field(foreign_key="users.id", index=True)

    # Notification fields
    type: NotificationType = Field(index=True)

    title: str
    message: str

    item_id: Optional[uuid.UUID] = Field(default=None, index=True)
    claim_id: Optional[uuid.UUID] = Field(default=None)

    is_read: bool = Field(default=False)
