from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from dataroom.api.deps import get_db, require_admin, require_user
from dataroom.schemas.access import NdaSignature
from dataroom.schemas.invite import (
    InviteClaimResult,
    InviteCreate,
    InviteCreated,
    InvitePublicRead,
)
from dataroom.services import invites as invite_service
from dataroom.services.identity import CurrentUser

router = APIRouter(prefix="/invite", tags=["invites"])


@router.post("", response_model=InviteCreated, status_code=status.HTTP_201_CREATED)
def create_invite(
    payload: InviteCreate,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    invite, invite_url = invite_service.invites.create(db, admin, payload)
    return {
        "invite_url": invite_url,
        "token": invite.token,
        "expires_at": invite.expires_at,
    }


@router.get("/{token}", response_model=InvitePublicRead)
def get_invite(token: str, db: Session = Depends(get_db)):
    invite = invite_service.invites.resolve(db, token)
    return {
        "email": invite.email,
        "expires_at": invite.expires_at,
        "document": invite.document,
        "document_description": invite.document.description,
    }


@router.post("/{token}/claim", response_model=InviteClaimResult)
def claim_invite(
    token: str,
    payload: NdaSignature,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    invite, request = invite_service.invites.claim(db, token, user, payload)
    return {
        "status": request.status.value,
        "document_slug": invite.document.slug,
        "request": request,
    }
