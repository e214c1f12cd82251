# storefront/api/errors.py
from fastapi import HTTPException

from storefront.domain.errors import (
    StorefrontError,
    Unauthenticated,
    NotFound,
    ProductUnavailable,
    InsufficientStock,
    ValidationError,
    InvalidStatusTransition,
)

_STATUS = {
    Unauthenticated: 401,
    NotFound: 404,
    ProductUnavailable: 409,
    InsufficientStock: 409,
    InvalidStatusTransition: 409,
    ValidationError: 400,
}


def to_http(e: StorefrontError) -> HTTPException:
    status = next((code for cls, code in _STATUS.items() if isinstance(e, cls)), 400)
    return HTTPException(
        status_code=status,
        detail={"error": type(e).__name__, "message": e.message, "details": e.details},
    )
