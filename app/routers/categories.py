from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db.db import get_session
from app.schemas.base import dump
from app.services import categories


router = APIRouter()


@router.get("")
def get_categories(session: Session = Depends(get_session)):
    return {
        "success": True,
        "categories": [dump(c) for c in categories.list_categories(session)],
    }
