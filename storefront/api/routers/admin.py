# storefront/api/routers/admin.py
from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import OrderOut, StatusUpdateIn
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/admin", tags=["admin"])


def require_admin(x_user_role: str | None = Header(None)):
    #role is asserted by the authentication layer in front of this service
    if x_user_role != "admin":
        raise HTTPException(status_code=403, detail="Admin role required")


@router.put("/orders/{order_id}/status", response_model=OrderOut, dependencies=[Depends(require_admin)])
def update_order_status(
    order_id: int,
    payload: StatusUpdateIn,
    db: Session = Depends(get_db),
):
    try:
        return OrderService(db).update_status(order_id, payload.status)
    except StorefrontError as e:
        raise to_http(e)
