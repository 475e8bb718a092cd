from fastapi import Depends, Header
from sqlalchemy.orm import Session

from dataroom.db import SessionLocal
from dataroom.errors import Unauthenticated
from dataroom.services.identity import CurrentUser, authenticate, require_administrator


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_optional_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> CurrentUser | None:
    """Anonymous callers get None; a presented but rejected token is a 401."""
    if authorization is None:
        return None
    token = _bearer_token(authorization)
    if token is None:
        raise Unauthenticated("Malformed Authorization header")
    user = authenticate(db, token)
    if user is None:
        raise Unauthenticated("Invalid or expired session")
    return user


def require_user(
    user: CurrentUser | None = Depends(get_optional_user),
) -> CurrentUser:
    if user is None:
        raise Unauthenticated()
    return user


def require_admin(user: CurrentUser = Depends(require_user)) -> CurrentUser:
    require_administrator(user, "admin endpoint")
    return user
