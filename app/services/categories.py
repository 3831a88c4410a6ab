import logging
from typing import List, Optional
from datetime import datetime, timezone
from sqlmodel import Session, func, select

from app.models.category import DEFAULT_CATEGORIES, Category
from app.models.item import Item
from app.models.user import User
from app.utils.errors import InvalidState, NotFound, ValidationError

logger = logging.getLogger(__name__)


def _find_by_name(session: Session, name: str, exclude_id: Optional[int] = None) -> Optional[Category]:
    query = select(Category).where(func.lower(Category.name) == name.strip().lower())

    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)

    return session.exec(query).first()


def count_items(session: Session, name: str) -> int:
    return session.exec(
        select(func.count(Item.id)).where(Item.category == name)
    ).one()


def list_categories(session: Session, active_only: bool = True) -> List[Category]:
    """Return categories with their cached item counts refreshed."""
    query = select(Category).order_by(Category.name)

    if active_only:
        query = query.where(Category.is_active == True)  # noqa: E712

    categories = session.exec(query).all()

    changed = False
    for category in categories:
        count = count_items(session, category.name)
        if category.item_count != count:
            category.item_count = count
            session.add(category)
            changed = True

    if changed:
        session.commit()

    return list(categories)


def resolve_item_category(session: Session, name: str) -> str:
    """
    Items carry the category as free text. Once categories are defined the
    text must name an active one; the stored spelling wins.
    """
    active = session.exec(
        select(Category).where(Category.is_active == True)  # noqa: E712
    ).all()

    if not active:
        return name

    for category in active:
        if category.name.lower() == name.strip().lower():
            return category.name

    raise ValidationError(f"Unknown category '{name}'")


def refresh_item_count(session: Session, name: str):
    category = session.exec(select(Category).where(Category.name == name)).first()
    if not category:
        return

    category.item_count = count_items(session, name)
    session.add(category)
    session.commit()


def _validate(name: str, description: str):
    if not name or not name.strip():
        raise ValidationError("Category name is required")

    if not description or not description.strip():
        raise ValidationError("Category description is required")


def create_category(session: Session, admin: User, name: str, description: str, icon: Optional[str] = None) -> Category:
    _validate(name, description)

    if _find_by_name(session, name):
        raise InvalidState("Category already exists")

    category = Category(
        name=name.strip(),
        description=description.strip(),
        icon=icon or "📦",
        created_by=admin.id,
    )
    category.item_count = count_items(session, category.name)

    session.add(category)
    session.commit()
    session.refresh(category)

    return category


def update_category(
    session: Session,
    category_id: int,
    name: str,
    description: str,
    icon: Optional[str] = None,
) -> tuple:
    """Update a category; a rename is carried over to every item using the old name."""
    _validate(name, description)

    category = session.get(Category, category_id)
    if not category:
        raise NotFound("Category not found")

    if _find_by_name(session, name, exclude_id=category_id):
        raise InvalidState("Category name already exists")

    old_name = category.name

    category.name = name.strip()
    category.description = description.strip()
    category.icon = icon or "📦"
    category.updated_at = datetime.now(timezone.utc)

    if old_name != category.name:
        items = session.exec(select(Item).where(Item.category == old_name)).all()

        for item in items:
            item.category = category.name
            session.add(item)

        logger.info("Category '%s' renamed to '%s' on %d items", old_name, category.name, len(items))

    session.add(category)
    session.commit()
    session.refresh(category)

    return category, old_name


def delete_category(session: Session, category_id: int) -> str:
    category = session.get(Category, category_id)
    if not category:
        raise NotFound("Category not found")

    items_count = count_items(session, category.name)
    if items_count > 0:
        raise InvalidState(
            f"Cannot delete category that has {items_count} item(s). Please reassign items first."
        )

    name = category.name

    session.delete(category)
    session.commit()

    return name


def initialize_defaults(session: Session, admin: User) -> tuple:
    created, skipped = 0, 0

    for data in DEFAULT_CATEGORIES:
        if _find_by_name(session, data["name"]):
            skipped += 1
            continue

        session.add(Category(**data, created_by=admin.id))
        created += 1

    session.commit()

    logger.info("Categories initialized: %d created, %d skipped", created, skipped)

    return created, skipped
