# storefront/repos/product_repo.py
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_active_product(self, product_id: int) -> ProductModel | None:
        product = self.get_product(product_id)
        if product is None or not product.is_active:
            return None
        return product

    def read_fresh(self, product_id: int) -> ProductModel | None:
        """Bypasses the identity map so price/stock reflect the committed row."""
        return self.db.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def decrement_stock_conditional(self, product_id: int, amount: int) -> bool:
        #UPDATE products SET stock = stock - n WHERE id = ? AND stock >= n
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= amount)
            .values(stock=ProductModel.stock - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def current_stock(self, product_id: int) -> int:
        stock = self.db.execute(
            select(ProductModel.stock).where(ProductModel.id == product_id)
        ).scalar_one_or_none()
        return stock or 0

    def count(self) -> int:
        return self.db.execute(select(func.count(ProductModel.id))).scalar_one()

    def add_products(self, products: list[ProductModel]) -> None:
        self.db.add_all(products)
        self.db.commit()
