import logging
from datetime import datetime, timezone
from typing import List, Optional
import uuid
from sqlmodel import Session, func, or_, select

from app.models.claim import Claim
from app.models.item import Item, ItemStatus, ItemType, build_search_tags
from app.models.user import User
from app.services import categories
from app.services.claims import delete_claims
from app.utils.errors import Forbidden, NotFound, ValidationError
from app.utils.form_validator import validate_create_item_form, validate_item_updates

logger = logging.getLogger(__name__)

SIMILAR_ITEMS_LIMIT = 4


def get_item(session: Session, item_id: uuid.UUID) -> Item:
    item = session.get(Item, item_id)
    if not item:
        raise NotFound("Item not found")

    return item


def report_item(session: Session, reporter: User, item_type: ItemType, form) -> Item:
    """Validate a lost/found report and store it with the reporter snapshot."""
    validated = validate_create_item_form(
        item_type.value,
        form.name,
        form.description,
        form.category,
        form.date,
        form.location,
        contact_email=form.contact_email,
        contact_phone=form.contact_phone,
    )

    category = categories.resolve_item_category(session, validated.category)

    item = Item(
        user_id=reporter.id,
        name=validated.name,
        description=validated.description,
        type=item_type,
        category=category,
        location=validated.location,
        date=validated.date,
        contact_email=validated.contact_email or reporter.email,
        contact_phone=validated.contact_phone or reporter.phone,
        reporter_name=reporter.name,
        reporter_email=reporter.email,
        reporter_role=reporter.role.value,
        reporter_university_id=reporter.university_id,
        search_tags=build_search_tags(validated.name, validated.description),
    )

    session.add(item)
    session.commit()
    session.refresh(item)

    logger.info("User %s reported %s item %s", reporter.id, item_type.value, item.id)

    categories.refresh_item_count(session, category)

    return item


def update_item(session: Session, item_id: uuid.UUID, editor: User, updates: dict) -> Item:
    item = get_item(session, item_id)

    if item.user_id is None or item.user_id != editor.id:
        raise Forbidden("Unauthorized to edit this item")

    cleaned = validate_item_updates(updates)
    if not cleaned:
        raise ValidationError("No fields to update")

    old_category = item.category
    if "category" in cleaned:
        cleaned["category"] = categories.resolve_item_category(session, cleaned["category"])

    for field, value in cleaned.items():
        setattr(item, field, value)

    if "name" in cleaned or "description" in cleaned:
        item.search_tags = build_search_tags(item.name, item.description)

    item.updated_at = datetime.now(timezone.utc)

    session.add(item)
    session.commit()
    session.refresh(item)

    if item.category != old_category:
        categories.refresh_item_count(session, old_category)
        categories.refresh_item_count(session, item.category)

    return item


def delete_item(session: Session, item: Item) -> str:
    """Delete an item with its claims. Returns the deleted item's name."""
    name, category = item.name, item.category

    claims = session.exec(select(Claim).where(Claim.item_id == item.id)).all()
    delete_claims(session, claims)
    session.flush()

    session.delete(item)
    session.commit()

    logger.info("Item %s deleted with %d claim(s)", name, len(claims))

    categories.refresh_item_count(session, category)

    return name


def delete_item_as(session: Session, item_id: uuid.UUID, actor: User) -> str:
    item = get_item(session, item_id)

    if not ((item.user_id is not None and item.user_id == actor.id) or actor.is_admin):
        raise Forbidden("Unauthorized to delete this item")

    return delete_item(session, item)


def search_items(
    session: Session,
    q: Optional[str] = None,
    category: Optional[str] = None,
    item_type: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Item]:
    query = select(Item).order_by(Item.created_at.desc())

    if q and q.strip():
        term = f"%{q.strip().lower()}%"
        query = query.where(or_(
            func.lower(Item.name).like(term),
            func.lower(Item.description).like(term),
            func.lower(Item.location).like(term),
            func.lower(Item.category).like(term),
        ))

    if category:
        query = query.where(func.lower(Item.category) == category.strip().lower())

    if item_type:
        if item_type not in [t.value for t in ItemType]:
            raise ValidationError("Invalid item type")
        query = query.where(Item.type == ItemType(item_type))

    if status:
        if status not in [s.value for s in ItemStatus]:
            raise ValidationError("Invalid item status")
        query = query.where(Item.status == ItemStatus(status))

    return list(session.exec(query).all())


def similar_items(session: Session, item: Item, limit: int = SIMILAR_ITEMS_LIMIT) -> List[Item]:
    return list(session.exec(
        select(Item)
        .where(Item.category == item.category)
        .where(Item.id != item.id)
        .where(Item.status == ItemStatus.available)
        .order_by(Item.created_at.desc())
        .limit(limit)
    ).all())
