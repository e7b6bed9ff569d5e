# core/fetcher.py
import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional
import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from config.settings import Settings
from util.constants import ExternalURIs
from util.errors import FetchExhausted

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
RETRYABLE = (httpx.HTTPError, OSError)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """
    Shared client for the repository provider: token auth, GitHub JSON accept header,
    and the configured timeout. Callers own its lifetime.
    """
    headers = {
        "Authorization": f"token {settings.GITHUB_TOKEN}",
        "Accept": ExternalURIs.GITHUB_ACCEPT,
    }
    timeout = httpx.Timeout(settings.FETCH_TIMEOUT_SECONDS, connect=10.0)
    return httpx.AsyncClient(headers=headers, timeout=timeout, follow_redirects=True)


class RetryFetcher:
    """
    GET with bounded retries and exponential backoff.

    Any transport error or non-2xx status is retried; the wait before attempt
    n+1 is `backoff_seconds * 2**n` (2s, 4s, 8s, 16s with the defaults).
    After `max_attempts` failures a FetchExhausted is raised, chained from the
    last underlying error.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_attempts: int = 5,
        backoff_seconds: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._max_attempts = max(1, int(max_attempts))
        self._backoff = float(backoff_seconds)
        self._sleep = sleep

    def _retrying(self, target: str) -> AsyncRetrying:
        def _log_retry(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            delay = state.next_action.sleep if state.next_action else 0.0
            logger.warning(
                "fetch.retry url=%s attempt=%d delay=%.1fs err=%s",
                target,
                state.attempt_number,
                delay,
                type(exc).__name__ if exc else "-",
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=2 * self._backoff, max=3600),
            retry=retry_if_exception_type(RETRYABLE),
            before_sleep=_log_retry,
            sleep=self._sleep,
        )

    async def _get(
        self, url: str, params: Optional[Dict[str, Any]], handle: Callable[[httpx.Response], Awaitable[Any]]
    ) -> Any:
        try:
            async for attempt in self._retrying(url):
                with attempt:
                    n = attempt.retry_state.attempt_number
                    logger.debug("fetch.attempt url=%s attempt=%d", url, n)
                    res = await self._client.get(url, params=params)
                    res.raise_for_status()
                    return await handle(res)
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.error(
                "fetch.exhausted url=%s attempts=%d err=%s",
                url,
                self._max_attempts,
                type(last).__name__ if last else "-",
            )
            raise FetchExhausted(url, self._max_attempts) from last

    async def fetch_text(self, url: str) -> str:
        async def _text(res: httpx.Response) -> str:
            return res.text

        data = await self._get(url, None, _text)
        logger.info("fetch.text.ok url=%s chars=%d", url, len(data))
        return data

    async def fetch_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        async def _json(res: httpx.Response) -> Any:
            return res.json()

        return await self._get(url, params, _json)

    async def download(self, url: str, dest: Path) -> None:
        """Persist the raw body at `dest`. The parent directory must exist."""

        async def _write(res: httpx.Response) -> None:
            await asyncio.to_thread(Path(dest).write_bytes, res.content)

        await self._get(url, None, _write)
        logger.info("fetch.download.ok url=%s dest=%s", url, dest)
