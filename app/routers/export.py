import csv
import io
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlmodel import Session, select

from app.db.db import get_session
from app.models.claim import Claim
from app.models.item import Item
from app.models.user import User
from app.utils.auth_helper import require_admin


router = APIRouter()

ITEM_COLUMNS = {
    "id": "Item ID",
    "name": "Name",
    "type": "Type",
    "category": "Category",
    "status": "Status",
    "location": "Location",
    "date": "Date",
    "reporter_name": "Reported By",
    "reporter_email": "Reporter Email",
    "total_claims": "Total Claims",
    "created_at": "Report Date",
}

CLAIM_COLUMNS = {
    "id": "Claim ID",
    "item_id": "Item ID",
    "claimant_id": "Claimant ID",
    "status": "Status",
    "message": "Message",
    "contact_email": "Contact Email",
    "admin_response": "Response",
    "created_at": "Submitted",
    "resolved_at": "Resolved",
}

USER_COLUMNS = {
    "public_id": "User ID",
    "name": "Name",
    "email": "Email",
    "university_id": "University ID",
    "role": "Role",
    "is_suspended": "Suspended",
    "is_banned": "Banned",
    "created_at": "Joined",
}


def _cell(value):
    if value is None:
        return ""

    return value.value if hasattr(value, "value") else str(value)


def iter_csv(rows, columns: dict):
    """Yield the export one CSV line at a time, header first."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow(columns.values())
    yield buffer.getvalue()

    for row in rows:
        buffer.seek(0)
        buffer.truncate()
        writer.writerow([_cell(getattr(row, col)) for col in columns])
        yield buffer.getvalue()


def _csv_response(rows, columns: dict, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter_csv(rows, columns),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/items.csv")
def export_items(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    rows = session.exec(select(Item).order_by(Item.created_at.desc())).all()
    return _csv_response(rows, ITEM_COLUMNS, "items.csv")


@router.get("/claims.csv")
def export_claims(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    rows = session.exec(select(Claim).order_by(Claim.created_at.desc())).all()
    return _csv_response(rows, CLAIM_COLUMNS, "claims.csv")


@router.get("/users.csv")
def export_users(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    rows = session.exec(select(User).order_by(User.created_at.desc())).all()
    return _csv_response(rows, USER_COLUMNS, "users.csv")
