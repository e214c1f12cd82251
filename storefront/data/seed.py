# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.database import SessionLocal
from storefront.data.models.product import ProductModel
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    {"sku": "DRL-001", "name": "Дрель ударная", "price": Decimal("4990.00"), "original_price": Decimal("5990.00"), "stock": 12},
    {"sku": "SAW-002", "name": "Пила циркулярная", "price": Decimal("7450.00"), "original_price": None, "stock": 5},
    {"sku": "SCR-003", "name": "Набор отверток", "price": Decimal("890.00"), "original_price": None, "stock": 40},
]


def seed(db: Session | None = None) -> int:
    """Insert demo products into an empty catalog. Returns how many were added."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        repo = ProductRepo(db)
        #only seed if empty
        if repo.count() > 0:
            return 0
        repo.add_products([ProductModel(is_active=True, **p) for p in DEMO_PRODUCTS])
        logger.info(f"Seeded {len(DEMO_PRODUCTS)} products")
        return len(DEMO_PRODUCTS)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()
