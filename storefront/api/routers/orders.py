# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends, Header, HTTPException, Response
from sqlalchemy.orm import Session

from storefront.api.deps import get_identity, get_local_store, get_notifier
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import CheckoutIn, CustomerInfo, OrderOut, OrderListOut
from storefront.services.checkout_service import CheckoutService
from storefront.services.local_store import LocalStateStore
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    response: Response,
    idempotency_key: str | None = Header(None),
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    notifier: NotificationService = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """
    Places an order from the current cart.
    Same idempotency key again -> same order with 200 instead of 201.
    """
    svc = CheckoutService(db, local_store, notifier)
    customer = payload.model_dump(include=set(CustomerInfo.model_fields))
    try:
        order, created = svc.checkout(
            identity,
            customer,
            payload.payment_method,
            payload.idempotency_key or idempotency_key,
        )
    except StorefrontError as e:
        raise to_http(e)

    if not created:
        response.status_code = 200
    return order


@router.get("/my", response_model=OrderListOut)
def my_orders(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    try:
        return {"orders": OrderService(db).list_orders(identity)}
    except StorefrontError as e:
        raise to_http(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    try:
        return OrderService(db).get_order(order_id, identity)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StorefrontError as e:
        raise to_http(e)
