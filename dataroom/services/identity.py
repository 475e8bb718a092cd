import logging
import uuid
from dataclasses import dataclass

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from dataroom.config import settings
from dataroom.errors import AuthorizationError, NotFound, UpstreamUnavailable, ValidationFailed
from dataroom.models.dataroom import UserProfile, UserRole
from dataroom.services.common import apply_ordering, apply_pagination, coerce_uuid, insert_ignore
from dataroom.services.event import EventType, publish_event
from dataroom.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """What the identity provider vouches for."""

    id: uuid.UUID
    email: str


@dataclass(frozen=True)
class CurrentUser:
    id: uuid.UUID
    email: str
    role: str = UserRole.viewer.value

    @property
    def is_admin(self) -> bool:
        return is_administrator(self)


def is_administrator(user) -> bool:
    """The one administrator predicate: static allow-list OR stored role flag."""
    if user is None:
        return False
    email = (getattr(user, "email", "") or "").strip().lower()
    if email and email in settings.admin_emails:
        return True
    return getattr(user, "role", None) == UserRole.admin.value


def require_administrator(user, action: str) -> None:
    if not is_administrator(user):
        logger.warning(
            "Rejected %s for non-administrator %s", action, getattr(user, "id", None)
        )
        raise AuthorizationError()


class IdentityProvider:
    @staticmethod
    def fetch_identity(access_token: str) -> Identity | None:
        """Exchange a bearer token for the provider's user record.

        Returns None when the provider rejects the token; raises
        UpstreamUnavailable when the provider cannot answer.
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        if settings.identity_api_key:
            headers["apikey"] = settings.identity_api_key
        try:
            with httpx.Client(timeout=settings.identity_timeout) as client:
                resp = client.get(settings.identity_user_url, headers=headers)
            if resp.status_code in (401, 403):
                return None
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Identity provider request failed: %s", e)
            raise UpstreamUnavailable("Identity provider unavailable")

        user_id = data.get("id")
        email = (data.get("email") or "").strip().lower()
        if not user_id or not email:
            logger.warning("Identity provider returned an incomplete user record")
            return None
        try:
            return Identity(id=uuid.UUID(str(user_id)), email=email)
        except ValueError:
            logger.warning("Identity provider returned a malformed user id")
            return None


class Profiles(ListResponseMixin):
    @staticmethod
    def sync(db: Session, identity: Identity) -> UserProfile:
        """Create the local profile on first sight and keep its email current."""
        created = insert_ignore(
            db,
            UserProfile,
            {"user_id": identity.id, "email": identity.email},
            ["user_id"],
        )
        profile = db.get(UserProfile, identity.id, populate_existing=True)
        if profile.email != identity.email:
            profile.email = identity.email
        db.commit()
        if created:
            logger.info("Created profile for user %s", identity.id)
        return profile

    @staticmethod
    def get(db: Session, user_id: str) -> UserProfile:
        profile = db.get(UserProfile, coerce_uuid(user_id))
        if not profile:
            raise NotFound("User not found")
        return profile

    @staticmethod
    def list(
        db: Session,
        role: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[UserProfile]:
        stmt = select(UserProfile)
        if role is not None:
            stmt = stmt.where(UserProfile.role == role)
        stmt = apply_ordering(
            stmt,
            order_by,
            order_dir,
            {"created_at": UserProfile.created_at, "email": UserProfile.email},
        )
        return db.scalars(apply_pagination(stmt, limit, offset)).all()

    @staticmethod
    def set_role(db: Session, actor, user_id: str, role: str) -> UserProfile:
        require_administrator(actor, "role change")
        try:
            UserRole(role)
        except ValueError:
            raise ValidationFailed(
                f"Invalid role: {role}",
                details={"allowed": [r.value for r in UserRole]},
            )
        profile = Profiles.get(db, user_id)
        previous = profile.role
        profile.role = role
        db.commit()
        db.refresh(profile)
        logger.info(
            "Changed role of user %s from %s to %s", profile.user_id, previous, role
        )
        publish_event(
            EventType.role_changed,
            entity_type="user_profile",
            entity_id=profile.user_id,
            actor_id=actor.id,
            user_id=profile.user_id,
            payload={"role": role, "previous_role": previous},
        )
        return profile


def authenticate(db: Session, access_token: str) -> CurrentUser | None:
    identity = IdentityProvider.fetch_identity(access_token)
    if identity is None:
        return None
    profile = Profiles.sync(db, identity)
    return CurrentUser(id=profile.user_id, email=profile.email, role=profile.role)


identity_provider = IdentityProvider()
profiles = Profiles()
