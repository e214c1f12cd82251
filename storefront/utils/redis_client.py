# storefront/utils/redis_client.py
import redis

from storefront.utils.settings import REDIS_URL, REDIS_SOCKET_TIMEOUT


def make_redis(url: str | None = None) -> redis.Redis:
    #timeouts so a dead redis surfaces as an error instead of a hang
    return redis.Redis.from_url(
        url or REDIS_URL,
        decode_responses=True,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
    )
