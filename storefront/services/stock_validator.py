# storefront/services/stock_validator.py
from sqlalchemy.orm import Session

from storefront.domain.cart import CartLine, ValidatedLine
from storefront.domain.errors import ProductUnavailable, InsufficientStock
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StockPriceValidator:
    """
    Checkout gate, all or nothing:
    - missing or inactive product -> ProductUnavailable
    - stock below requested quantity -> InsufficientStock (no auto-adjust)
    - price is always the current product price, never a cached one

    Only a pre-filter for the user; the conditional stock decrement in the
    order transaction is what actually protects stock.
    """

    def __init__(self, db: Session):
        self.products = ProductRepo(db)

    def validate(self, lines: list[CartLine]) -> list[ValidatedLine]:
        validated = []
        for line in lines:
            product = self.products.read_fresh(line.product_id)

            if product is None or not product.is_active:
                logger.info(f"Checkout rejected: product {line.product_id} unavailable")
                raise ProductUnavailable(line.product_id)

            if product.stock < line.quantity:
                logger.info(
                    f"Checkout rejected: product {line.product_id} "
                    f"requested {line.quantity}, in stock {product.stock}"
                )
                raise InsufficientStock(line.product_id, line.quantity, product.stock)

            validated.append(
                ValidatedLine(
                    product_id=product.id,
                    product_name=product.name,
                    product_price=product.price,
                    quantity=line.quantity,
                )
            )
        return validated
