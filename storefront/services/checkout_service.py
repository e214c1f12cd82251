# storefront/services/checkout_service.py
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.cart import OrderDraft
from storefront.domain.errors import DuplicateSubmission, ValidationError
from storefront.domain.identity import Anonymous, Authenticated
from storefront.domain.order_status import PaymentMethod
from storefront.domain.schemas import CustomerInfo
from storefront.services.cart_service import CartService
from storefront.services.local_store import LocalStateStore
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.stock_validator import StockPriceValidator
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    checkout(identity, customer, payment method, idempotency key) -> (order, created)

    created is False when the key was already used: the first order is
    returned and nothing else happens.
    """

    def __init__(
        self,
        db: Session,
        local_store: LocalStateStore | None = None,
        notifier: NotificationService | None = None,
    ):
        self.carts = CartService(db, local_store)
        self.validator = StockPriceValidator(db)
        self.orders = OrderService(db)
        self.notifier = notifier or NotificationService()

    @staticmethod
    def _customer(customer) -> CustomerInfo:
        if isinstance(customer, CustomerInfo):
            return customer
        try:
            return CustomerInfo.model_validate(customer)
        except PydanticValidationError as e:
            raise ValidationError("Invalid customer data", errors=e.errors(include_url=False, include_context=False)) from e

    def _clear_local_cart(self, identity, order_id: int) -> None:
        if not isinstance(identity, Anonymous):
            return
        if not self.carts.clear_local_cart(identity):
            logger.error(f"Local cart {identity.local_token} not cleared after order {order_id}")

    def checkout(
        self,
        identity,
        customer,
        payment_method: PaymentMethod | str,
        idempotency_key: str | None,
    ) -> tuple[OrderModel, bool]:
        if not idempotency_key:
            raise ValidationError("Idempotency key is required")

        #retry of a finished checkout by the same cart: answer with the first order
        existing = self.orders.get_order_by_key(identity.cart_key, idempotency_key)
        if existing:
            logger.info(f"Checkout {idempotency_key} repeated, returning order {existing.id}")
            #a clear that failed after the first commit gets another chance
            self._clear_local_cart(identity, existing.id)
            return existing, False

        customer = self._customer(customer)
        try:
            payment_method = PaymentMethod(payment_method)
        except ValueError as e:
            raise ValidationError(f"Unknown payment method: {payment_method}") from e

        lines = self.carts.cart_lines(identity)
        if not lines:
            raise ValidationError("Cart is empty")

        validated = self.validator.validate(lines)

        draft = OrderDraft(
            cart_key=identity.cart_key,
            user_id=identity.user_id if isinstance(identity, Authenticated) else None,
            customer=customer,
            payment_method=payment_method,
            lines=tuple(validated),
        )

        try:
            order = self.orders.create_order_atomic(draft, idempotency_key)
        except DuplicateSubmission as dup:
            logger.info(str(dup))
            self._clear_local_cart(identity, dup.order_id)
            return self.orders.get_order_by_id(dup.order_id), False

        self._clear_local_cart(identity, order.id)

        try:
            self.notifier.send_order_notification(order.id, order.customer_email, order.user_id)
        except Exception as e:
            #order is committed, a lost notification must not turn it into an error
            logger.error(f"Notification for order {order.id} not queued: {e}")

        return order, True
