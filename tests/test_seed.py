from storefront.data.models.product import ProductModel
from storefront.data.seed import DEMO_PRODUCTS, seed


def test_seed_fills_empty_catalog(db):
    assert seed(db) == len(DEMO_PRODUCTS)

    names = {p.name for p in db.query(ProductModel).all()}
    assert names == {p["name"] for p in DEMO_PRODUCTS}


def test_seed_skips_existing_catalog(db, products):
    assert seed(db) == 0
    assert db.query(ProductModel).count() == len(products)
