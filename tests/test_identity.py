import uuid

from storefront.domain.identity import Anonymous, Authenticated
from storefront.services.identity_service import new_local_token, resolve_identity


def test_user_id_wins_over_token():
    identity = resolve_identity(5, "tok")

    assert identity == Authenticated(user_id=5)
    assert identity.cart_key == "5"


def test_token_is_kept_for_visitor():
    identity = resolve_identity(None, "tok")

    assert identity == Anonymous(local_token="tok")
    assert identity.cart_key == "tok"


def test_visitor_without_token_gets_new_one():
    first = resolve_identity(None, None)
    second = resolve_identity(None, "")

    assert isinstance(first, Anonymous)
    assert first.local_token != second.local_token
    uuid.UUID(first.local_token)


def test_new_local_token_is_uuid4():
    assert uuid.UUID(new_local_token()).version == 4
