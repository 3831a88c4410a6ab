# Request / response models for the admin routes
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class OverviewStats(BaseModel):
    total_items: int
    pending_claims: int
    total_users: int
    resolved_items: int


class UserStats(BaseModel):
    total_users: int
    student_count: int
    admin_count: int
    suspended_count: int
    banned_count: int


class UserDetail(BaseModel):
    id: int
    public_id: str
    name: str
    email: str
    role: str
    university_id: str
    phone: Optional[str]
    is_verified: bool
    is_suspended: bool
    suspension_reason: Optional[str]
    suspended_at: Optional[datetime]
    is_banned: bool
    ban_reason: Optional[str]
    banned_at: Optional[datetime]
    created_at: datetime
    items_count: int


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserDetail]
    user_stats: UserStats
    current_page: int
    total_pages: int
    total_users: int


class ModerateUserRequest(BaseModel):
    reason: Optional[str] = None


class RoleChangeRequest(BaseModel):
    role: str


class BulkDeleteRequest(BaseModel):
    item_ids: List[str] = []


class CategoryRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None


class ClaimRejectAdminRequest(BaseModel):
    reason: Optional[str] = None
