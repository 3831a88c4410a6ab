import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, func, select
from werkzeug.security import check_password_hash, generate_password_hash

from app.db.db import get_session
from app.models.user import User
from app.schemas.auth_schemas import LoginRequest, RegisterRequest, TokenResponse
from app.schemas.user_schemas import user_out
from app.services import policy
from app.utils.auth_helper import create_access_token, require_verified_user
from app.utils.errors import InvalidState, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_PASSWORD_LENGTH = 6


@router.post("/register")
def register(payload: RegisterRequest, session: Session = Depends(get_session)):
    name = payload.name.strip()
    email = payload.email.strip().lower()
    university_id = payload.university_id.strip()

    if not all([name, email, payload.password, university_id]):
        raise ValidationError("All required fields must be filled")

    if "@" not in email:
        raise ValidationError("Invalid email address")

    if payload.password != payload.confirm_password:
        raise ValidationError("Passwords do not match")

    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if session.exec(select(User).where(func.lower(User.email) == email)).first():
        raise InvalidState("Email already registered")

    if session.exec(select(User).where(User.university_id == university_id)).first():
        raise InvalidState("University ID already registered")

    user = User(
        name=name,
        email=email,
        university_id=university_id,
        phone=(payload.phone or "").strip() or None,
        password_hash=generate_password_hash(payload.password),
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info("Registered user %s", user.id)

    return {
        "success": True,
        "message": "Registration successful! You can now log in.",
        "user": user_out(user),
    }


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, session: Session = Depends(get_session)):
    email = payload.email.strip().lower()

    user = session.exec(select(User).where(func.lower(User.email) == email)).first()

    if not user or not check_password_hash(user.password_hash, payload.password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    # banned / suspended / unverified accounts get a 403 envelope
    policy.ensure_can_act(user)

    return TokenResponse(
        access_token=create_access_token(user),
        user_id=user.public_id,
        role=user.role.value,
    )


@router.get("/me")
def me(user: User = Depends(require_verified_user)):
    return {"success": True, "user": user_out(user)}
