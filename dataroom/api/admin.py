from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dataroom.api.deps import get_db, require_admin
from dataroom.schemas.access import AccessRequestAdminRead, AccessStatusUpdate
from dataroom.schemas.common import ListResponse
from dataroom.schemas.document import (
    ContentUploadRead,
    ContentUploadRequest,
    DocumentCreate,
    DocumentRead,
    DocumentUpdate,
)
from dataroom.schemas.invite import InviteRead
from dataroom.schemas.user import RoleUpdate, UserProfileRead
from dataroom.services import access as access_service
from dataroom.services import documents as document_service
from dataroom.services import identity as identity_service
from dataroom.services import invites as invite_service
from dataroom.services.identity import CurrentUser

router = APIRouter(prefix="/admin", tags=["admin"])


# ------------------------------------------------------------------
# Access requests
# ------------------------------------------------------------------


@router.get("/access", response_model=ListResponse[AccessRequestAdminRead])
def list_access_requests(
    status: str | None = None,
    document_id: str | None = None,
    user_id: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return access_service.access_requests.list_response(
        db,
        status,
        document_id,
        user_id,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.patch("/access", response_model=AccessRequestAdminRead)
def update_access_request(
    payload: AccessStatusUpdate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return access_service.access_requests.transition(
        db, admin, str(payload.request_id), payload.status
    )


# ------------------------------------------------------------------
# Invites
# ------------------------------------------------------------------


@router.get("/invites", response_model=ListResponse[InviteRead])
def list_invites(
    document_id: str | None = None,
    email: str | None = None,
    claimed: bool | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return invite_service.invites.list_response(
        db,
        document_id,
        email,
        claimed,
        order_by,
        order_dir,
        limit,
        offset,
    )


# ------------------------------------------------------------------
# Document registry
# ------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_document(
    payload: DocumentCreate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return document_service.documents.create(db, admin, payload)


@router.get("/documents", response_model=ListResponse[DocumentRead])
def list_documents(
    tier: str | None = None,
    is_active: bool | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return document_service.documents.list_response(
        db, tier, is_active, order_by, order_dir, limit, offset
    )


@router.get("/documents/{document_id}", response_model=DocumentRead)
def get_document(
    document_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return document_service.documents.get(db, document_id, include_inactive=True)


@router.patch("/documents/{document_id}", response_model=DocumentRead)
def update_document(
    document_id: str,
    payload: DocumentUpdate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return document_service.documents.update(db, admin, document_id, payload)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    document_service.documents.delete(db, admin, document_id)


@router.post("/documents/{document_id}/upload-url", response_model=ContentUploadRead)
def create_upload_url(
    document_id: str,
    payload: ContentUploadRequest,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return document_service.documents.create_upload_url(
        db, admin, document_id, payload.file_name, payload.mime_type
    )


# ------------------------------------------------------------------
# Users
# ------------------------------------------------------------------


@router.get("/users", response_model=ListResponse[UserProfileRead])
def list_users(
    role: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return identity_service.profiles.list_response(
        db, role, order_by, order_dir, limit, offset
    )


@router.put("/users/{user_id}/role", response_model=UserProfileRead)
def set_user_role(
    user_id: str,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    return identity_service.profiles.set_role(db, admin, user_id, payload.role)
