# storefront/services/server_store.py
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.wishlist_item import WishlistItemModel
from storefront.domain.cart import CartLine
from storefront.domain.errors import Unauthenticated, NotFound, ValidationError
from storefront.domain.identity import Authenticated
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.wishlist_repo import WishlistRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def require_user(identity) -> Authenticated:
    if not isinstance(identity, Authenticated):
        raise Unauthenticated()
    return identity


class ServerCartStore:
    """
    Persisted cart rows of a logged in user (cart_key = str(user_id)).

    commands (add, remove, set_quantity, clear) commit on success and roll back on error
    queries (items, lines) only read
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    def _require_active_product(self, product_id: int) -> None:
        if self.products.get_active_product(product_id) is None:
            raise NotFound("Product", product_id)

    #queries
    def items(self, identity) -> list[CartItemModel]:
        user = require_user(identity)
        return self.repo.get_cart_items_with_products(user.cart_key)

    def lines(self, identity) -> list[CartLine]:
        user = require_user(identity)
        return [
            CartLine(product_id=i.product_id, quantity=i.quantity)
            for i in self.repo.get_cart_items(user.cart_key)
        ]

    def quantity(self, identity, product_id: int) -> int:
        user = require_user(identity)
        item = self.repo.get_cart_item(user.cart_key, product_id)
        return item.quantity if item else 0

    #commands
    def add(self, identity, product_id: int, quantity: int = 1) -> CartItemModel:
        user = require_user(identity)
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        self._require_active_product(product_id)

        try:
            item = self.repo.upsert_cart_item(user.cart_key, product_id, quantity)
            self.repo.commit()
        except Exception as e:
            logger.error(f"Failed to add product {product_id} to cart {user.cart_key}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} x{quantity} added to cart {user.cart_key}, now {item.quantity}")
        return item

    def remove(self, identity, product_id: int) -> None:
        user = require_user(identity)
        existed = self.repo.delete_cart_item(user.cart_key, product_id)
        self.repo.commit()
        #idempotent: removing a missing row is still a success
        logger.info(f"Product {product_id} removed from cart {user.cart_key} (existed={existed})")

    def set_quantity(self, identity, product_id: int, quantity: int) -> CartItemModel | None:
        user = require_user(identity)
        if quantity <= 0:
            self.remove(identity, product_id)
            return None
        self._require_active_product(product_id)

        try:
            item = self.repo.set_quantity(user.cart_key, product_id, quantity)
            if item is None:
                item = self.repo.upsert_cart_item(user.cart_key, product_id, quantity)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} quantity set to {quantity} in cart {user.cart_key}")
        return item

    def clear(self, identity) -> int:
        user = require_user(identity)
        removed = self.repo.clear(user.cart_key)
        self.repo.commit()
        logger.info(f"Cart {user.cart_key} cleared ({removed} rows)")
        return removed


class ServerWishlistStore:
    def __init__(self, db: Session):
        self.repo = WishlistRepo(db)
        self.products = ProductRepo(db)

    def items(self, identity) -> list[WishlistItemModel]:
        user = require_user(identity)
        return self.repo.list_items(user.user_id)

    def product_ids(self, identity) -> list[int]:
        return [i.product_id for i in self.items(identity)]

    def contains(self, identity, product_id: int) -> bool:
        user = require_user(identity)
        return self.repo.get_item(user.user_id, product_id) is not None

    def add(self, identity, product_id: int) -> WishlistItemModel:
        user = require_user(identity)
        if self.products.get_active_product(product_id) is None:
            raise NotFound("Product", product_id)

        try:
            item = self.repo.upsert_item(user.user_id, product_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} in wishlist of user {user.user_id}")
        return item

    def remove(self, identity, product_id: int) -> None:
        user = require_user(identity)
        existed = self.repo.delete_item(user.user_id, product_id)
        self.repo.commit()
        logger.info(f"Product {product_id} removed from wishlist of user {user.user_id} (existed={existed})")
