from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dataroom.api.deps import get_db, get_optional_user, require_user
from dataroom.models.dataroom import AccessState
from dataroom.schemas.access import (
    AccessRequestCreate,
    AccessRequestResult,
    AccessStatusRead,
)
from dataroom.services import access as access_service
from dataroom.services.identity import CurrentUser

router = APIRouter(prefix="/access", tags=["access"])


@router.post("/request", response_model=AccessRequestResult)
def request_access(
    payload: AccessRequestCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    request, created = access_service.access_requests.request_access(
        db, user, str(payload.document_id), payload
    )
    return {
        "status": AccessState(request.status.value),
        "created": created,
        "request": request,
    }


@router.get("/status/{document_id}", response_model=AccessStatusRead)
def access_status(
    document_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
):
    state = access_service.access_requests.status_for(db, user, document_id)
    return {"document_id": document_id, "status": state}
