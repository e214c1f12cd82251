"""
Anonymous (not logged in) cart and wishlist state.

The state is kept per local token behind a small hash/set interface so the
store can sit on redis in production and on plain dicts in tests. Cart is a
hash {product_id: quantity}, wishlist a set of product ids. Every mutation is
a single atomic backend command (HINCRBY, HSET, HDEL, SADD, SREM), so requests
from several tabs of one visitor never overwrite each other.
"""
import threading
from typing import Protocol

import redis
from redis.exceptions import RedisError, ResponseError

from storefront.domain.cart import CartLine
from storefront.domain.errors import ValidationError
from storefront.utils.retry import redis_retry
from storefront.utils.settings import LOCAL_STATE_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StorageQuotaExceeded(Exception):
    """Backend refused a write because it is out of space."""


class KeyValueBackend(Protocol):
    def hgetall(self, key: str) -> dict: ...

    def hincrby(self, key: str, field: str, amount: int, ttl: int | None = None) -> int: ...

    def hset(self, key: str, field: str, value: int, ttl: int | None = None) -> None: ...

    def hdel(self, key: str, field: str) -> None: ...

    def smembers(self, key: str) -> set: ...

    def sadd(self, key: str, member: str, ttl: int | None = None) -> None: ...

    def srem(self, key: str, member: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryBackend:
    """In-process backend; one lock makes each command atomic like a redis command."""

    def __init__(self, max_entries: int | None = None):
        self.data: dict[str, dict | set] = {}
        self.max_entries = max_entries
        self._lock = threading.Lock()

    def _container(self, key: str, factory):
        if key not in self.data:
            if self.max_entries is not None and len(self.data) >= self.max_entries:
                raise StorageQuotaExceeded(f"memory backend full ({self.max_entries} keys)")
            self.data[key] = factory()
        return self.data[key]

    def _drop_if_empty(self, key: str) -> None:
        if key in self.data and not self.data[key]:
            del self.data[key]

    def hgetall(self, key: str) -> dict:
        with self._lock:
            return dict(self.data.get(key, {}))

    def hincrby(self, key: str, field: str, amount: int, ttl: int | None = None) -> int:
        with self._lock:
            hash_ = self._container(key, dict)
            hash_[field] = hash_.get(field, 0) + amount
            return hash_[field]

    def hset(self, key: str, field: str, value: int, ttl: int | None = None) -> None:
        with self._lock:
            self._container(key, dict)[field] = value

    def hdel(self, key: str, field: str) -> None:
        with self._lock:
            self.data.get(key, {}).pop(field, None)
            self._drop_if_empty(key)

    def smembers(self, key: str) -> set:
        with self._lock:
            return set(self.data.get(key, set()))

    def sadd(self, key: str, member: str, ttl: int | None = None) -> None:
        with self._lock:
            self._container(key, set).add(member)

    def srem(self, key: str, member: str) -> None:
        with self._lock:
            self.data.get(key, set()).discard(member)
            self._drop_if_empty(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self.data.pop(key, None)


class RedisBackend:
    def __init__(self, client: redis.Redis):
        self.redis = client

    def _write(self, key: str, ttl: int | None, command: str, *args):
        #MULTI/EXEC: the mutation and the TTL refresh land together
        pipe = self.redis.pipeline(transaction=True)
        getattr(pipe, command)(key, *args)
        if ttl:
            pipe.expire(key, ttl)
        try:
            return pipe.execute()[0]
        except ResponseError as e:
            if "OOM" in str(e):
                raise StorageQuotaExceeded(str(e)) from e
            raise

    @redis_retry()
    def hgetall(self, key: str) -> dict:
        return self.redis.hgetall(key)

    @redis_retry()
    def hincrby(self, key: str, field: str, amount: int, ttl: int | None = None) -> int:
        return self._write(key, ttl, "hincrby", field, amount)

    @redis_retry()
    def hset(self, key: str, field: str, value: int, ttl: int | None = None) -> None:
        self._write(key, ttl, "hset", field, value)

    @redis_retry()
    def hdel(self, key: str, field: str) -> None:
        self.redis.hdel(key, field)

    @redis_retry()
    def smembers(self, key: str) -> set:
        return self.redis.smembers(key)

    @redis_retry()
    def sadd(self, key: str, member: str, ttl: int | None = None) -> None:
        self._write(key, ttl, "sadd", member)

    @redis_retry()
    def srem(self, key: str, member: str) -> None:
        self.redis.srem(key, member)

    @redis_retry()
    def delete(self, key: str) -> None:
        self.redis.delete(key)


class LocalStateStore:
    def __init__(self, backend: KeyValueBackend, token: str, ttl: int = LOCAL_STATE_TTL_SECONDS):
        self.backend = backend
        self.token = token
        self.ttl = ttl

    @property
    def _cart_key(self) -> str:
        return f"local:{self.token}:cart"

    @property
    def _wishlist_key(self) -> str:
        return f"local:{self.token}:wishlist"

    #mutations never raise: a full or unreachable backend turns them into no-ops
    def _apply(self, command, *args, **kwargs) -> bool:
        try:
            command(*args, **kwargs)
            return True
        except (StorageQuotaExceeded, RedisError) as e:
            logger.warning(f"Local state for {self.token} not saved: {e}")
            return False

    #cart
    def cart(self) -> dict[int, int]:
        return {int(pid): int(qty) for pid, qty in self.backend.hgetall(self._cart_key).items()}

    def lines(self) -> list[CartLine]:
        return [CartLine(product_id=pid, quantity=qty) for pid, qty in self.cart().items()]

    def add(self, product_id: int, quantity: int = 1) -> bool:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        return self._apply(self.backend.hincrby, self._cart_key, str(product_id), quantity, ttl=self.ttl)

    def remove(self, product_id: int) -> bool:
        return self._apply(self.backend.hdel, self._cart_key, str(product_id))

    def set_quantity(self, product_id: int, quantity: int) -> bool:
        if quantity <= 0:
            return self.remove(product_id)
        return self._apply(self.backend.hset, self._cart_key, str(product_id), quantity, ttl=self.ttl)

    def clear_cart(self) -> bool:
        return self._apply(self.backend.delete, self._cart_key)

    #wishlist
    def wishlist(self) -> set[int]:
        return {int(pid) for pid in self.backend.smembers(self._wishlist_key)}

    def in_wishlist(self, product_id: int) -> bool:
        return product_id in self.wishlist()

    def add_to_wishlist(self, product_id: int) -> bool:
        return self._apply(self.backend.sadd, self._wishlist_key, str(product_id), ttl=self.ttl)

    def remove_from_wishlist(self, product_id: int) -> bool:
        return self._apply(self.backend.srem, self._wishlist_key, str(product_id))

    def clear(self) -> bool:
        cart_done = self.clear_cart()
        wishlist_done = self._apply(self.backend.delete, self._wishlist_key)
        return cart_done and wishlist_done
