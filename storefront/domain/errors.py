"""
Error taxonomy of the cart/wishlist/checkout core.

StorefrontError (base)
├── Unauthenticated
├── NotFound
├── ProductUnavailable
├── InsufficientStock
├── DuplicateSubmission
├── ValidationError
└── InvalidStatusTransition

Services raise these; routers translate them into HTTP responses.
"""


class StorefrontError(Exception):
    """
    Base exception for all storefront errors.

    Attributes:
        message: Human-readable error message
        details: Additional context (entity ids, quantities, ...)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class Unauthenticated(StorefrontError):
    """Raised when the server store is used without a resolved user."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFound(StorefrontError):
    """Raised when a referenced product or row does not exist."""

    def __init__(self, entity: str, entity_id):
        super().__init__(
            f"{entity} {entity_id} not found",
            details={"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class ProductUnavailable(StorefrontError):
    """Raised at checkout when a cart line references a missing or inactive product."""

    def __init__(self, product_id: int):
        super().__init__(
            f"Product {product_id} is no longer available",
            details={"product_id": product_id},
        )
        self.product_id = product_id


class InsufficientStock(StorefrontError):
    """Raised when the requested quantity exceeds current stock."""

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            details={"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class DuplicateSubmission(StorefrontError):
    """Signals a reused idempotency key. Carries the order created by the first submission."""

    def __init__(self, idempotency_key: str, order_id: int):
        super().__init__(
            f"Checkout {idempotency_key} was already submitted as order {order_id}",
            details={"idempotency_key": idempotency_key, "order_id": order_id},
        )
        self.idempotency_key = idempotency_key
        self.order_id = order_id


class ValidationError(StorefrontError):
    """Raised for malformed input (customer fields, quantities, empty cart)."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message, details={"errors": errors or []})
        self.errors = errors or []


class InvalidStatusTransition(StorefrontError):
    def __init__(self, order_id: int, current: str, requested: str):
        super().__init__(
            f"Order {order_id} cannot move from {current} to {requested}",
            details={"order_id": order_id, "current": current, "requested": requested},
        )
        self.order_id = order_id
        self.current = current
        self.requested = requested
