from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    name: str = Field(index=True, unique=True)
    description: str
    icon: str = Field(default="📦")
    is_active: bool = Field(default=True, index=True)

    created_by: Optional[int] = Field(default=None, foreign_key="users.id")

    # Cached count of items whose category equals this name
    item_count: int = Field(default=0)


DEFAULT_CATEGORIES = [
    {"name": "Electronics", "description": "Phones, laptops, tablets, etc.", "icon": "📱"},
    {"name": "Books", "description": "Textbooks, notebooks, novels", "icon": "📚"},
    {"name": "ID Cards", "description": "Student IDs, staff cards", "icon": "🆔"},
    {"name": "Bags", "description": "Backpacks, purses, wallets", "icon": "🎒"},
    {"name": "Clothing", "description": "Jackets, hats, accessories", "icon": "👕"},
    {"name": "Keys", "description": "Keychains, house keys, car keys", "icon": "🔑"},
    {"name": "Water Bottles", "description": "Bottles, tumblers, containers", "icon": "💧"},
    {"name": "Other", "description": "Miscellaneous items", "icon": "📦"},
]
