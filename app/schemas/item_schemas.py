from typing import Optional
from pydantic import BaseModel, ConfigDict

from app.schemas.base import dump


class ItemReportRequest(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


class ItemUpdateRequest(BaseModel):
    # unknown keys are kept so the field whitelist can name them in its 400
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


def item_out(item) -> dict:
    return dump(item)
