import os
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlmodel import Session, select

from app.db.db import get_session
from app.models.user import User
from app.services import policy

SECRET_KEY = os.getenv("JWT_SECRET", "your_really_long_secret_key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 24 * 60))  # 1 day


def create_access_token(user: User) -> str:
    now = datetime.now(timezone.utc)

    jwt_payload = {
        "sub": user.public_id,
        "role": user.role.value if hasattr(user.role, "value") else user.role,
        "iat": now,
        "exp": now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }

    return jwt.encode(jwt_payload, SECRET_KEY, algorithm=ALGORITHM)


bearer_scheme_optional = HTTPBearer(auto_error=False)


def get_current_user_optional(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_optional)):
    if not token:
        return None

    try:
        payload = jwt.decode(token.credentials, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


bearer_scheme_required = HTTPBearer(auto_error=True)


def get_current_user_required(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_required)):
    try:
        payload = jwt.decode(
            token.credentials,
            SECRET_KEY,
            algorithms=[ALGORITHM],
        )
        return payload
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def get_db_user(session: Session, current_user):
    user = session.exec(
        select(User).where(User.public_id == current_user["sub"])
    ).first()

    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return user


def get_viewer(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_optional),
):
    if not current_user:
        return None

    return session.exec(
        select(User).where(User.public_id == current_user["sub"])
    ).first()


def get_authenticated_user(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
) -> User:
    return get_db_user(session, current_user)


def require_verified_user(user: User = Depends(get_authenticated_user)) -> User:
    policy.ensure_verified(user)
    return user


def require_active_user(user: User = Depends(get_authenticated_user)) -> User:
    policy.ensure_can_act(user)
    return user


def require_admin(user: User = Depends(get_authenticated_user)) -> User:
    policy.ensure_admin(user)
    return user
