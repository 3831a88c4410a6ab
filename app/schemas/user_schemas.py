from app.schemas.base import dump


PRIVATE_USER_FIELDS = {"password_hash"}


def user_out(user) -> dict:
    return dump(user, exclude=PRIVATE_USER_FIELDS)


def user_summary(user) -> dict:
    if user is None:
        return None

    return {
        "public_id": user.public_id,
        "name": user.name,
        "email": user.email,
    }
