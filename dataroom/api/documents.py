from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dataroom.api.deps import get_db, get_optional_user, require_user
from dataroom.schemas.common import ListResponse
from dataroom.schemas.document import DocumentContentRead, DocumentSummary
from dataroom.schemas.user import CurrentUserRead
from dataroom.services import access as access_service
from dataroom.services import documents as document_service
from dataroom.services.identity import CurrentUser

router = APIRouter(tags=["documents"])


@router.get("/me", response_model=CurrentUserRead)
def whoami(user: CurrentUser = Depends(require_user)):
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "is_admin": user.is_admin,
    }


@router.get("/documents", response_model=ListResponse[DocumentSummary])
def list_documents(
    db: Session = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
):
    items = document_service.documents.list_visible(db, user)
    return {"items": items, "count": len(items)}


@router.get("/documents/{slug}", response_model=DocumentSummary)
def get_document(
    slug: str,
    db: Session = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
):
    document = document_service.documents.get_by_slug(db, slug)
    return {
        "id": document.id,
        "slug": document.slug,
        "title": document.title,
        "description": document.description,
        "tier": document.tier,
        "icon": document.icon,
        "updated_at": document.updated_at,
        "access_status": access_service.access_requests.resolve(db, user, document),
    }


@router.get("/documents/{slug}/content", response_model=DocumentContentRead)
def get_document_content(
    slug: str,
    db: Session = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
):
    return document_service.documents.read_content(db, user, slug)
