# repository/rate_gate_repository.py
import asyncio
from typing import Final
from redis.asyncio import Redis
from repository.namespaces import RATE
from util.timing import now_ms
import logging

KEY_PREFIX: Final[str] = RATE
logger = logging.getLogger(__name__)


class RateGateRepository:
    """
    Call spacing shared by every invocation: a caller may proceed once it owns
    `repoindex:rate:{name}`, which expires after `window_ms`.
    """

    def __init__(self, redis: Redis) -> None:
        self._r = redis

    @staticmethod
    def _key(name: str) -> str:
        return f"{KEY_PREFIX}:{name}"

    async def try_acquire(self, name: str, window_ms: int) -> bool:
        ok = await self._r.set(self._key(name), str(now_ms()), nx=True, px=window_ms)
        return bool(ok)

    async def acquire(self, name: str, window_ms: int) -> None:
        while not await self.try_acquire(name, window_ms):
            ttl = await self._r.pttl(self._key(name))
            if ttl == -2:
                # expired between SET and PTTL
                continue
            wait_ms = ttl if ttl > 0 else window_ms
            logger.debug("rate.wait name=%s ms=%d", name, wait_ms)
            await asyncio.sleep(wait_ms / 1000)
