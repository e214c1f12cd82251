# storefront/services/order_service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.cart import OrderDraft
from storefront.domain.errors import (
    DuplicateSubmission,
    InsufficientStock,
    InvalidStatusTransition,
    NotFound,
)
from storefront.domain.identity import Authenticated
from storefront.domain.order_status import OrderStatus, PaymentStatus, can_transition
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.server_store import require_user
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Order domain, kept apart from the cart services.
    Creation is one database transaction; reads and the admin status
    change are separate use cases.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.carts = CartRepo(db)

    @db_retry()
    def create_order_atomic(self, draft: OrderDraft, idempotency_key: str) -> OrderModel:
        """
        Use Case: create an order from validated lines.

        1. total = sum(quantity * current price)
        2. order row with status pending / unpaid
        3. one order item snapshot per line
        4. conditional stock decrement per line
        5. server cart rows of the draft's cart key removed

        All in one transaction. An idempotency key already used by the same
        cart raises DuplicateSubmission carrying the existing order id; keys
        of other carts never match.
        """
        existing = self.repo.get_by_idempotency_key(draft.cart_key, idempotency_key)
        if existing:
            raise DuplicateSubmission(idempotency_key, existing.id)

        customer = draft.customer
        order = OrderModel(
            user_id=draft.user_id,
            cart_key=draft.cart_key,
            idempotency_key=idempotency_key,
            customer_name=customer.customer_name,
            customer_email=str(customer.customer_email),
            customer_phone=customer.customer_phone,
            address=customer.address,
            city=customer.city,
            postal_code=customer.postal_code,
            notes=customer.notes,
            status=OrderStatus.PENDING.value,
            payment_method=draft.payment_method.value,
            payment_status=PaymentStatus.UNPAID.value,
            total_amount=draft.total_amount,
            items=[
                OrderItemModel(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    product_price=line.product_price,
                    quantity=line.quantity,
                    total_price=line.total_price,
                )
                for line in draft.lines
            ],
        )

        try:
            self.repo.add_order(order)

            for line in draft.lines:
                if not self.products.decrement_stock_conditional(line.product_id, line.quantity):
                    available = self.products.current_stock(line.product_id)
                    raise InsufficientStock(line.product_id, line.quantity, available)

            #anonymous carts live in the local store and are cleared by the caller
            if draft.user_id is not None:
                self.carts.clear(draft.cart_key)

            self.db.commit()

        except IntegrityError:
            #same key committed by a concurrent request
            self.db.rollback()
            existing = self.repo.get_by_idempotency_key(draft.cart_key, idempotency_key)
            if existing:
                raise DuplicateSubmission(idempotency_key, existing.id)
            raise

        except Exception as e:
            logger.warning(f"Order for key {idempotency_key} rolled back: {e}")
            self.db.rollback()
            raise

        logger.info(
            f"Order {order.id} created for cart {draft.cart_key}: "
            f"{len(draft.lines)} lines, total {order.total_amount}"
        )
        return self.get_order_by_id(order.id)

    def get_order_by_id(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Order", order_id)
        return order

    def get_order_by_key(self, cart_key: str, idempotency_key: str) -> OrderModel | None:
        return self.repo.get_by_idempotency_key(cart_key, idempotency_key)

    def get_order(self, order_id: int, identity) -> OrderModel:
        """
        Use Case: read one order (Query).
        Guest orders are readable by id, user orders only by their owner.
        """
        order = self.get_order_by_id(order_id)

        if order.user_id is not None:
            if not isinstance(identity, Authenticated) or identity.user_id != order.user_id:
                raise PermissionError("No access to this order")

        return order

    def list_orders(self, identity) -> list[OrderModel]:
        user = require_user(identity)
        return self.repo.list_by_user(user.user_id)

    def update_status(self, order_id: int, status: OrderStatus) -> OrderModel:
        """
        Use Case: back-office status change.
        pending -> processing -> shipped -> delivered, cancelled from pending/processing.
        """
        order = self.get_order_by_id(order_id)
        current = OrderStatus(order.status)

        if not can_transition(current, status):
            raise InvalidStatusTransition(order_id, current.value, status.value)

        order = self.repo.update_order_status(order, status.value)
        logger.info(f"Order {order_id}: {current.value} -> {status.value}")
        return order
