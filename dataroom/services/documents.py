from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dataroom.errors import Conflict, NotFound, ValidationFailed
from dataroom.models.dataroom import AccessRequest, Document, DocumentTier
from dataroom.schemas.document import DocumentCreate, DocumentUpdate
from dataroom.services.access import AccessRequests, effective_state
from dataroom.services.common import apply_ordering, apply_pagination, coerce_uuid
from dataroom.services.event import EventType, publish_event
from dataroom.services.identity import is_administrator, require_administrator
from dataroom.services.response import ListResponseMixin
from dataroom.services.storage import storage

logger = logging.getLogger(__name__)


def _validate_tier(tier: str) -> DocumentTier:
    try:
        return DocumentTier(tier)
    except ValueError:
        raise ValidationFailed(
            f"Invalid tier: {tier}",
            details={"allowed": [t.value for t in DocumentTier]},
        )


def _normalize_visibility(roles: list[str]) -> list[str]:
    seen: list[str] = []
    for role in roles:
        role = role.strip().lower()
        if role and role not in seen:
            seen.append(role)
    return seen


class Documents(ListResponseMixin):
    @staticmethod
    def create(db: Session, actor, payload: DocumentCreate) -> Document:
        require_administrator(actor, "document creation")
        data = payload.model_dump()
        data["tier"] = _validate_tier(data["tier"])
        data["visibility"] = _normalize_visibility(data["visibility"])
        document = Document(**data, created_by=actor.id)
        try:
            db.add(document)
            db.flush()
        except IntegrityError:
            db.rollback()
            raise Conflict(f"Slug already exists: {payload.slug}")
        db.commit()
        db.refresh(document)
        logger.info("Created document %s (%s)", document.id, document.slug)
        publish_event(
            EventType.document_created,
            entity_type="document",
            entity_id=document.id,
            actor_id=actor.id,
            document_id=document.id,
            payload={"slug": document.slug, "tier": document.tier.value},
        )
        return document

    @staticmethod
    def get(db: Session, document_id: str, include_inactive: bool = False) -> Document:
        document = db.get(Document, coerce_uuid(document_id))
        if not document or (not document.is_active and not include_inactive):
            raise NotFound("Document not found")
        return document

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Document:
        document = db.scalar(
            select(Document).where(Document.slug == slug, Document.is_active.is_(True))
        )
        if not document:
            raise NotFound("Document not found")
        return document

    @staticmethod
    def list(
        db: Session,
        tier: str | None,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Document]:
        stmt = select(Document)
        if tier is not None:
            stmt = stmt.where(Document.tier == _validate_tier(tier))
        if is_active is None:
            stmt = stmt.where(Document.is_active.is_(True))
        else:
            stmt = stmt.where(Document.is_active == is_active)
        stmt = apply_ordering(
            stmt,
            order_by,
            order_dir,
            {
                "created_at": Document.created_at,
                "title": Document.title,
                "slug": Document.slug,
            },
        )
        return db.scalars(apply_pagination(stmt, limit, offset)).all()

    @staticmethod
    def update(db: Session, actor, document_id: str, payload: DocumentUpdate) -> Document:
        require_administrator(actor, "document update")
        document = Documents.get(db, document_id, include_inactive=True)
        data = payload.model_dump(exclude_unset=True)
        if "tier" in data:
            data["tier"] = _validate_tier(data["tier"])
        if "visibility" in data:
            data["visibility"] = _normalize_visibility(data["visibility"] or [])
        for key, value in data.items():
            setattr(document, key, value)
        db.commit()
        db.refresh(document)
        logger.info("Updated document %s", document.id)
        publish_event(
            EventType.document_updated,
            entity_type="document",
            entity_id=document.id,
            actor_id=actor.id,
            document_id=document.id,
            payload={"fields": sorted(data)},
        )
        return document

    @staticmethod
    def delete(db: Session, actor, document_id: str) -> None:
        require_administrator(actor, "document deletion")
        document = Documents.get(db, document_id)
        # slug stays reserved after a soft delete
        document.is_active = False
        db.commit()
        logger.info("Soft-deleted document %s", document_id)
        publish_event(
            EventType.document_deleted,
            entity_type="document",
            entity_id=document.id,
            actor_id=actor.id,
            document_id=document.id,
        )

    @staticmethod
    def create_upload_url(
        db: Session, actor, document_id: str, file_name: str, mime_type: str
    ) -> dict:
        require_administrator(actor, "content upload")
        document = Documents.get(db, document_id)
        content_ref = storage.generate_content_key(document.slug, file_name)
        upload_url = storage.generate_upload_url(content_ref, mime_type)
        document.content_ref = content_ref
        db.commit()
        logger.info("Issued upload URL for document %s", document.id)
        return {"upload_url": upload_url, "content_ref": content_ref}

    @staticmethod
    def list_visible(db: Session, user) -> list[dict]:
        """Catalog for a viewer.

        A non-public document is listed when the viewer is an administrator,
        holds a role named in its visibility, or already has an access
        request for it.
        """
        documents = db.scalars(
            select(Document)
            .where(Document.is_active.is_(True))
            .order_by(Document.title.asc())
        ).all()
        statuses = {}
        if user is not None:
            rows = db.execute(
                select(AccessRequest.document_id, AccessRequest.status).where(
                    AccessRequest.user_id == user.id
                )
            ).all()
            statuses = {document_id: status for document_id, status in rows}
        admin = is_administrator(user)
        role = getattr(user, "role", None)

        entries = []
        for document in documents:
            listed = (
                document.tier == DocumentTier.public
                or admin
                or document.id in statuses
                or (role is not None and role in (document.visibility or []))
            )
            if not listed:
                continue
            entries.append(
                {
                    "id": document.id,
                    "slug": document.slug,
                    "title": document.title,
                    "description": document.description,
                    "tier": document.tier,
                    "icon": document.icon,
                    "updated_at": document.updated_at,
                    "access_status": effective_state(
                        document, user, statuses.get(document.id), admin=admin
                    ),
                }
            )
        return entries

    @staticmethod
    def read_content(db: Session, user, slug: str) -> dict:
        document = Documents.get_by_slug(db, slug)
        AccessRequests.require_content_access(db, user, document)
        download_url = None
        if document.content_ref:
            if storage.is_configured():
                download_url = storage.generate_download_url(document.content_ref)
            else:
                logger.warning(
                    "Document %s has a content_ref but storage is not configured",
                    document.id,
                )
        return {
            "slug": document.slug,
            "title": document.title,
            "content": document.content,
            "download_url": download_url,
        }


documents = Documents()
