import pytest

from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import NotFound, Unauthenticated, ValidationError
from storefront.domain.identity import Authenticated
from storefront.services.server_store import ServerCartStore, ServerWishlistStore


def quantities(store, identity):
    return {line.product_id: line.quantity for line in store.lines(identity)}


class TestServerCart:
    def test_add_sums_quantities_for_same_product(self, db, products, user):
        store = ServerCartStore(db)

        store.add(user, 1, 2)
        store.add(user, 1, 3)
        store.add(user, 2)

        assert quantities(store, user) == {1: 5, 2: 1}
        assert db.query(CartItemModel).filter_by(cart_key="42", product_id=1).count() == 1

    def test_add_returns_refreshed_row(self, db, products, user):
        store = ServerCartStore(db)

        store.add(user, 1, 2)
        item = store.add(user, 1, 4)

        assert item.quantity == 6

    def test_carts_are_per_user(self, db, products, user):
        store = ServerCartStore(db)
        other = Authenticated(user_id=7)

        store.add(user, 1, 2)

        assert quantities(store, other) == {}

    def test_anonymous_is_rejected(self, db, products, visitor):
        store = ServerCartStore(db)

        with pytest.raises(Unauthenticated):
            store.add(visitor, 1)
        with pytest.raises(Unauthenticated):
            store.lines(visitor)

    def test_inactive_or_missing_product_is_not_found(self, db, products, user):
        store = ServerCartStore(db)

        with pytest.raises(NotFound):
            store.add(user, 3)
        with pytest.raises(NotFound):
            store.add(user, 999)

        assert quantities(store, user) == {}

    def test_non_positive_quantity_is_rejected(self, db, products, user):
        with pytest.raises(ValidationError):
            ServerCartStore(db).add(user, 1, 0)

    def test_remove_is_idempotent(self, db, products, user):
        store = ServerCartStore(db)
        store.add(user, 1)

        store.remove(user, 1)
        store.remove(user, 1)

        assert quantities(store, user) == {}

    def test_set_quantity_overwrites_and_inserts(self, db, products, user):
        store = ServerCartStore(db)
        store.add(user, 1, 5)

        store.set_quantity(user, 1, 2)
        store.set_quantity(user, 2, 3)

        assert quantities(store, user) == {1: 2, 2: 3}

    def test_set_quantity_zero_deletes(self, db, products, user):
        store = ServerCartStore(db)
        store.add(user, 1, 5)

        assert store.set_quantity(user, 1, 0) is None
        assert quantities(store, user) == {}

    def test_clear(self, db, products, user):
        store = ServerCartStore(db)
        store.add(user, 1)
        store.add(user, 2)

        assert store.clear(user) == 2
        assert quantities(store, user) == {}

    def test_items_carry_products(self, db, products, user):
        store = ServerCartStore(db)
        store.add(user, 2, 2)

        (item,) = store.items(user)
        assert item.product.name == "Пила"


class TestServerWishlist:
    def test_add_is_unique(self, db, products, user):
        store = ServerWishlistStore(db)

        store.add(user, 1)
        store.add(user, 1)
        store.add(user, 2)

        assert sorted(store.product_ids(user)) == [1, 2]
        assert store.contains(user, 1)
        assert not store.contains(user, 4)

    def test_inactive_product_is_not_found(self, db, products, user):
        with pytest.raises(NotFound):
            ServerWishlistStore(db).add(user, 3)

    def test_remove_is_idempotent(self, db, products, user):
        store = ServerWishlistStore(db)
        store.add(user, 1)

        store.remove(user, 1)
        store.remove(user, 1)

        assert store.product_ids(user) == []

    def test_anonymous_is_rejected(self, db, products, visitor):
        with pytest.raises(Unauthenticated):
            ServerWishlistStore(db).product_ids(visitor)
