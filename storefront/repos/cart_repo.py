# storefront/repos/cart_repo.py
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from storefront.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, cart_key: str) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_key == cart_key)
                .order_by(CartItemModel.added_at, CartItemModel.id)
            ).scalars()
        )

    def get_cart_items_with_products(self, cart_key: str) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .options(joinedload(CartItemModel.product))
                .where(CartItemModel.cart_key == cart_key)
                .order_by(CartItemModel.added_at, CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, cart_key: str, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_key == cart_key,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def _increment(self, cart_key: str, product_id: int, delta: int) -> int:
        #UPDATE ... SET quantity = quantity + :delta, atomic in the database
        result = self.db.execute(
            update(CartItemModel)
            .where(
                CartItemModel.cart_key == cart_key,
                CartItemModel.product_id == product_id,
            )
            .values(quantity=CartItemModel.quantity + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def upsert_cart_item(self, cart_key: str, product_id: int, delta: int) -> CartItemModel:
        """
        Increment the (cart_key, product_id) row by delta or insert it with quantity=delta.
        Does not commit.
        """
        if self._increment(cart_key, product_id, delta) == 0:
            try:
                self.db.add(CartItemModel(cart_key=cart_key, product_id=product_id, quantity=delta))
                self.db.flush()
            except IntegrityError:
                #another request inserted the row first, fall back to increment
                self.db.rollback()
                self._increment(cart_key, product_id, delta)

        item = self.get_cart_item(cart_key, product_id)
        self.db.refresh(item)
        return item

    def set_quantity(self, cart_key: str, product_id: int, quantity: int) -> CartItemModel | None:
        result = self.db.execute(
            update(CartItemModel)
            .where(
                CartItemModel.cart_key == cart_key,
                CartItemModel.product_id == product_id,
            )
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        item = self.get_cart_item(cart_key, product_id)
        self.db.refresh(item)
        return item

    def delete_cart_item(self, cart_key: str, product_id: int) -> bool:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_key == cart_key,
                CartItemModel.product_id == product_id,
            )
        )
        return result.rowcount > 0

    def clear(self, cart_key: str) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.cart_key == cart_key))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
