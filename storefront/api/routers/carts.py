#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_identity, get_local_store
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import CartOut, ItemIn, QuantityIn
from storefront.services.cart_service import CartService
from storefront.services.local_store import LocalStateStore

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session, local_store: LocalStateStore | None):
    return CartService(db=db, local_store=local_store)


@router.get("", response_model=CartOut)
def get_cart(
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    svc = get_service(db, local_store)
    try:
        return svc.get_cart(identity)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    svc = get_service(db, local_store)
    try:
        return svc.add_product(identity, payload.product_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)


@router.put("/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: int,
    payload: QuantityIn,
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    svc = get_service(db, local_store)
    try:
        return svc.set_quantity(identity, product_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    svc = get_service(db, local_store)
    try:
        return svc.remove_product(identity, product_id)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("", response_model=CartOut)
def clear_cart(
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    svc = get_service(db, local_store)
    try:
        return svc.clear_cart(identity)
    except StorefrontError as e:
        raise to_http(e)
