from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from app.utils.errors import ValidationError


class ValidatedCreateItem(BaseModel):
    item_type: Literal["lost", "found"]
    name: str = Field(min_length=2, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    category: str = Field(min_length=1, max_length=50)
    date: datetime
    location: str = Field(min_length=2, max_length=100)
    contact_email: Optional[str] = Field(default=None, max_length=200)
    contact_phone: Optional[str] = Field(default=None, max_length=30)


def parse_date(date: str) -> datetime:
    try:
        return datetime.fromisoformat(date.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise ValidationError("Date not parseable")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None

    value = value.strip()
    return value or None


def _first_error(e: PydanticValidationError) -> str:
    err = e.errors()[0]
    field = ".".join(str(part) for part in err["loc"])
    return f"{field}: {err['msg']}"


def validate_create_item_form(
    item_type: str,
    name: str,
    description: str,
    category: str,
    date: str,
    location: str,
    contact_email: Optional[str] = None,
    contact_phone: Optional[str] = None,
) -> ValidatedCreateItem:
    if not all([name, description, category, date, location]):
        raise ValidationError("All required fields must be filled")

    parsed_date = parse_date(date)

    try:
        return ValidatedCreateItem(
            item_type=item_type,
            name=name.strip(),
            description=description.strip(),
            category=category.strip(),
            date=parsed_date,
            location=location.strip(),
            contact_email=_clean(contact_email),
            contact_phone=_clean(contact_phone),
        )
    except PydanticValidationError as e:
        raise ValidationError(_first_error(e))


UPDATABLE_ITEM_FIELDS = {
    "name",
    "description",
    "category",
    "location",
    "date",
    "contact_email",
    "contact_phone",
}


def validate_item_updates(updates: dict) -> dict:
    cleaned = {}

    for field, value in updates.items():
        if field not in UPDATABLE_ITEM_FIELDS:
            raise ValidationError(f"Field '{field}' cannot be updated")

        if field == "date":
            value = parse_date(value)
        elif isinstance(value, str):
            value = value.strip()
        else:
            raise ValidationError(f"Field '{field}' must be a string")

        if field in ("name", "description", "category", "location") and not value:
            raise ValidationError(f"Field '{field}' cannot be empty")

        cleaned[field] = value

    return cleaned
