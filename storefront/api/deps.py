# storefront/api/deps.py
from functools import lru_cache

from fastapi import Depends, Header, Response

from storefront.domain.identity import Anonymous, Identity
from storefront.services.identity_service import resolve_identity
from storefront.services.local_store import KeyValueBackend, LocalStateStore, RedisBackend
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.utils.redis_client import make_redis

CART_TOKEN_HEADER = "X-Cart-Token"


@lru_cache
def _redis():
    return make_redis()


def get_backend() -> KeyValueBackend:
    return RedisBackend(_redis())


def get_lock_service() -> LockService:
    return LockService(client=_redis())


def get_notifier() -> NotificationService:
    return NotificationService()


def get_identity(
    response: Response,
    x_user_id: int | None = Header(None),
    x_cart_token: str | None = Header(None),
) -> Identity:
    identity = resolve_identity(x_user_id, x_cart_token)
    if isinstance(identity, Anonymous):
        #client keeps this token and sends it back on every request
        response.headers[CART_TOKEN_HEADER] = identity.local_token
    return identity


def get_local_store(
    identity: Identity = Depends(get_identity),
    x_cart_token: str | None = Header(None),
    backend: KeyValueBackend = Depends(get_backend),
) -> LocalStateStore | None:
    token = identity.local_token if isinstance(identity, Anonymous) else x_cart_token
    if not token:
        return None
    return LocalStateStore(backend, token)
