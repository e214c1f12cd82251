# storefront/api/routers/session.py
from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from storefront.api.deps import get_backend, get_lock_service
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError, Unauthenticated
from storefront.domain.identity import Anonymous, Authenticated
from storefront.domain.schemas import MergeOut
from storefront.services.local_store import KeyValueBackend, LocalStateStore
from storefront.services.lock_service import LockService
from storefront.services.merge_service import MergeService, on_identity_transition

router = APIRouter(prefix="/session", tags=["session"])


@router.post("/merge", response_model=MergeOut)
def merge_after_login(
    x_session_id: str = Header(...),
    x_user_id: int | None = Header(None),
    x_cart_token: str | None = Header(None),
    backend: KeyValueBackend = Depends(get_backend),
    locks: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    """
    Called by the client right after login/registration, before the first
    cart render under the new identity.
    """
    local_store = LocalStateStore(backend, x_cart_token) if x_cart_token else None
    service = MergeService(db, local_store, locks)

    try:
        if x_user_id is None:
            raise Unauthenticated()
        current = Authenticated(user_id=x_user_id)

        if x_cart_token:
            result = on_identity_transition(Anonymous(local_token=x_cart_token), current, x_session_id, service)
        else:
            result = service.run_merge_once(current, x_session_id)
    except StorefrontError as e:
        raise to_http(e)

    return MergeOut(**vars(result))
