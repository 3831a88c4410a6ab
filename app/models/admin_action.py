from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class AdminAction(SQLModel, table=True):
    __tablename__ = "admin_actions"

    id: Optional[int] = Field(default=None, primary_key=True)
    performed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Admin who performed the action; the audit list is kept per admin
    performed_by: int = Field(foreign_key="users.id", index=True)

    action: str  # e.g. "delete_item", "suspend_user", "add_category"
    target_user: Optional[int] = Field(default=None)
    target_item: Optional[uuid.UUID] = Field(default=None)
    details: Optional[str] = None
