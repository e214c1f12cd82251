# storefront/api/routers/wishlist.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_identity, get_local_store
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.identity import Identity
from storefront.domain.schemas import WishlistOut, WishlistCheckOut
from storefront.services.local_store import LocalStateStore
from storefront.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=WishlistOut)
def get_wishlist(
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    return WishlistService(db, local_store).get_wishlist(identity)


@router.get("/check/{product_id}", response_model=WishlistCheckOut)
def check_wishlist(
    product_id: int,
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    in_wishlist = WishlistService(db, local_store).contains(identity, product_id)
    return {"product_id": product_id, "in_wishlist": in_wishlist}


@router.post("/{product_id}", response_model=WishlistOut)
def add_to_wishlist(
    product_id: int,
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    try:
        return WishlistService(db, local_store).add(identity, product_id)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("/{product_id}", response_model=WishlistOut)
def remove_from_wishlist(
    product_id: int,
    identity: Identity = Depends(get_identity),
    local_store: LocalStateStore | None = Depends(get_local_store),
    db: Session = Depends(get_db),
):
    return WishlistService(db, local_store).remove(identity, product_id)
