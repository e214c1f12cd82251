# storefront/services/wishlist_service.py
from typing import Dict, Any
from sqlalchemy.orm import Session

from storefront.domain.errors import NotFound
from storefront.domain.identity import Anonymous
from storefront.repos.product_repo import ProductRepo
from storefront.services.local_store import LocalStateStore
from storefront.services.server_store import ServerWishlistStore


class WishlistService:
    """Same routing as CartService: server rows for users, local set for visitors."""

    def __init__(self, db: Session, local_store: LocalStateStore | None = None):
        self.server = ServerWishlistStore(db)
        self.products = ProductRepo(db)
        self.local = local_store

    def _local_for(self, identity: Anonymous) -> LocalStateStore:
        if self.local is None or self.local.token != identity.local_token:
            raise RuntimeError(f"No local store bound to token {identity.local_token}")
        return self.local

    def get_wishlist(self, identity) -> Dict[str, Any]:
        if isinstance(identity, Anonymous):
            ids = sorted(self._local_for(identity).wishlist())
        else:
            ids = self.server.product_ids(identity)
        return {"authenticated": not isinstance(identity, Anonymous), "product_ids": ids}

    def contains(self, identity, product_id: int) -> bool:
        if isinstance(identity, Anonymous):
            return self._local_for(identity).in_wishlist(product_id)
        return self.server.contains(identity, product_id)

    def add(self, identity, product_id: int) -> Dict[str, Any]:
        if isinstance(identity, Anonymous):
            if self.products.get_active_product(product_id) is None:
                raise NotFound("Product", product_id)
            self._local_for(identity).add_to_wishlist(product_id)
        else:
            self.server.add(identity, product_id)
        return self.get_wishlist(identity)

    def remove(self, identity, product_id: int) -> Dict[str, Any]:
        if isinstance(identity, Anonymous):
            self._local_for(identity).remove_from_wishlist(product_id)
        else:
            self.server.remove(identity, product_id)
        return self.get_wishlist(identity)
