# storefront/services/cart_service.py
from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.orm import Session

from storefront.domain.cart import CartLine
from storefront.domain.errors import NotFound, ValidationError
from storefront.domain.identity import Anonymous
from storefront.repos.product_repo import ProductRepo
from storefront.services.local_store import LocalStateStore
from storefront.services.server_store import ServerCartStore
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Routes cart commands by identity:
    Authenticated -> ServerCartStore (rows in the database)
    Anonymous -> LocalStateStore (keyed by the local token)
    """

    def __init__(self, db: Session, local_store: LocalStateStore | None = None):
        self.server = ServerCartStore(db)
        self.products = ProductRepo(db)
        self.local = local_store

    def _local_for(self, identity: Anonymous) -> LocalStateStore:
        if self.local is None or self.local.token != identity.local_token:
            raise RuntimeError(f"No local store bound to token {identity.local_token}")
        return self.local

    #query
    def get_cart(self, identity) -> Dict[str, Any]:
        if isinstance(identity, Anonymous):
            rows = []
            for pid, qty in self._local_for(identity).cart().items():
                product = self.products.get_product(pid)
                #product deleted since it was added
                if product is None:
                    continue
                rows.append((product, qty))
        else:
            rows = [(i.product, i.quantity) for i in self.server.items(identity)]

        items = [
            {
                "product_id": product.id,
                "name": product.name,
                "price": product.price,
                "original_price": product.original_price,
                "quantity": qty,
                "line_total": product.price * qty,
            }
            for product, qty in rows
        ]

        return {
            "cart_key": identity.cart_key,
            "authenticated": not isinstance(identity, Anonymous),
            "items": items,
            "item_count": sum(i["quantity"] for i in items),
            "subtotal": sum((i["line_total"] for i in items), Decimal("0.00")),
        }

    def cart_lines(self, identity) -> list[CartLine]:
        if isinstance(identity, Anonymous):
            return self._local_for(identity).lines()
        return self.server.lines(identity)

    #commands
    def add_product(self, identity, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        if not isinstance(identity, Anonymous):
            self.server.add(identity, product_id, quantity)
            return self.get_cart(identity)

        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        if self.products.get_active_product(product_id) is None:
            raise NotFound("Product", product_id)

        saved = self._local_for(identity).add(product_id, quantity)
        logger.info(f"Product {product_id} x{quantity} added to local cart {identity.local_token} (saved={saved})")
        return self.get_cart(identity)

    def remove_product(self, identity, product_id: int) -> Dict[str, Any]:
        if isinstance(identity, Anonymous):
            self._local_for(identity).remove(product_id)
        else:
            self.server.remove(identity, product_id)
        return self.get_cart(identity)

    def set_quantity(self, identity, product_id: int, quantity: int) -> Dict[str, Any]:
        if not isinstance(identity, Anonymous):
            self.server.set_quantity(identity, product_id, quantity)
            return self.get_cart(identity)

        if quantity > 0 and self.products.get_active_product(product_id) is None:
            raise NotFound("Product", product_id)
        self._local_for(identity).set_quantity(product_id, quantity)
        return self.get_cart(identity)

    def clear_local_cart(self, identity: Anonymous) -> bool:
        """Drops the anonymous cart after checkout. False when the store could not delete it."""
        return self._local_for(identity).clear_cart()

    def clear_cart(self, identity) -> Dict[str, Any]:
        if isinstance(identity, Anonymous):
            self._local_for(identity).clear_cart()
        else:
            self.server.clear(identity)
        return self.get_cart(identity)
