from enum import Enum
from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class RoleType(str, Enum):
    student = "student"
    admin = "admin"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: str = Field(default_factory=lambda: uuid.uuid4().hex, index=True, unique=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    name: str
    email: str = Field(index=True, unique=True)  # stored lower-cased
    university_id: str = Field(index=True, unique=True)
    phone: Optional[str] = Field(default=None)
    password_hash: str

    role: RoleType = Field(default=RoleType.student, index=True)
    is_verified: bool = Field(default=True)  # auto-granted at registration
    email_notifications: bool = Field(default=True)

    # Moderation
    is_suspended: bool = Field(default=False, index=True)
    suspension_reason: Optional[str] = Field(default=None)
    suspended_at: Optional[datetime] = Field(default=None)
    suspended_by: Optional[int] = Field(default=None, foreign_key="users.id")

    is_banned: bool = Field(default=False, index=True)
    ban_reason: Optional[str] = Field(default=None)
    banned_at: Optional[datetime] = Field(default=None)
    banned_by: Optional[int] = Field(default=None, foreign_key="users.id")

    @property
    def is_admin(self) -> bool:
        return self.role == RoleType.admin
