# storefront/domain/cart.py
from dataclasses import dataclass
from decimal import Decimal

from storefront.domain.schemas import CustomerInfo
from storefront.domain.order_status import PaymentMethod


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class ValidatedLine:
    """Cart line re-checked against the product row at checkout time."""

    product_id: int
    product_name: str
    product_price: Decimal
    quantity: int

    @property
    def total_price(self) -> Decimal:
        return self.product_price * self.quantity


@dataclass(frozen=True)
class OrderDraft:
    cart_key: str
    user_id: int | None
    customer: CustomerInfo
    payment_method: PaymentMethod
    lines: tuple[ValidatedLine, ...]

    @property
    def total_amount(self) -> Decimal:
        return sum((line.total_price for line in self.lines), Decimal("0.00"))


def make_idempotency_key(cart_key: str, nonce: int) -> str:
    return f"{cart_key}:{nonce}"
