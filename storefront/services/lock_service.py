# storefront/services/lock_service.py
import redis

from storefront.utils.redis_client import make_redis
from storefront.utils.retry import redis_retry
from storefront.utils.settings import MERGE_GUARD_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in one step: only the owner may release the key
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Short-lived redis flags:
    -acquire with SET NX EX
    -release with an atomic lua compare-and-delete
    -per-session "already merged" guard for the login merge
    """

    def __init__(self, client: redis.Redis | None = None, url: str | None = None):
        self.redis = client if client is not None else make_redis(url)

    @staticmethod
    def merge_key(session_id: str) -> str:
        return f"merge:{session_id}"

    @redis_retry()
    def acquire(self, key: str, owner: str, ttl: int) -> bool:
        logger.info(f"Acquire {key} for {owner}")
        #SET merge:abc "abc" NX EX 86400
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def release(self, key: str, owner: str) -> bool:
        logger.info(f"Release {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)

    def acquire_merge_guard(self, session_id: str, ttl: int = MERGE_GUARD_TTL_SECONDS) -> bool:
        return self.acquire(self.merge_key(session_id), session_id, ttl)

    def release_merge_guard(self, session_id: str) -> bool:
        return self.release(self.merge_key(session_id), session_id)
