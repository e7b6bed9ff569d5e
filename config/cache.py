# config/cache.py
from typing import Optional
from redis.asyncio import Redis, from_url
from config.settings import settings

_client: Optional[Redis] = None


def connect(url: str) -> Redis:
    """
    Build a Redis client for the job/group/fingerprint keyspace.
    Values stay raw bytes; repositories decode JSON themselves.
    """
    return from_url(
        url,
        encoding="utf-8",
        decode_responses=False,
        socket_keepalive=True,
        health_check_interval=30,
    )


async def get_redis() -> Redis:
    # Connection pool only; no scheduling state is ever cached in-process.
    global _client
    if _client is None:
        _client = connect(settings.REDIS_URL)
        # Fail fast on startup if Redis is unreachable.
        await _client.ping()
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
