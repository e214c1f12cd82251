# storefront/repos/wishlist_repo.py
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from storefront.data.models.wishlist_item import WishlistItemModel


class WishlistRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_items(self, user_id: int) -> list[WishlistItemModel]:
        return list(
            self.db.execute(
                select(WishlistItemModel)
                .options(joinedload(WishlistItemModel.product))
                .where(WishlistItemModel.user_id == user_id)
                .order_by(WishlistItemModel.created_at.desc(), WishlistItemModel.id.desc())
            ).scalars()
        )

    def get_item(self, user_id: int, product_id: int) -> WishlistItemModel | None:
        return self.db.execute(
            select(WishlistItemModel).where(
                WishlistItemModel.user_id == user_id,
                WishlistItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def upsert_item(self, user_id: int, product_id: int) -> WishlistItemModel:
        existing = self.get_item(user_id, product_id)
        if existing:
            return existing

        item = WishlistItemModel(user_id=user_id, product_id=product_id)
        try:
            self.db.add(item)
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            return self.get_item(user_id, product_id)
        return item

    def delete_item(self, user_id: int, product_id: int) -> bool:
        result = self.db.execute(
            delete(WishlistItemModel).where(
                WishlistItemModel.user_id == user_id,
                WishlistItemModel.product_id == product_id,
            )
        )
        return result.rowcount > 0

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
