# core/anthropic_client.py
from typing import Dict, Any
import httpx
from config.settings import Settings
from repository.rate_gate_repository import RateGateRepository
from util.functions import clip_chars
import logging
from util.timing import timed

logger = logging.getLogger(__name__)

SUMMARY_GATE = "anthropic.summary"
MAX_PROMPT_CHARS = 24_000


async def _post_json(
    url: str, headers: Dict[str, str], payload: Dict[str, Any], timeout: float = 60.0
) -> Dict[str, Any]:
    """
    Make a JSON POST to `url`. Raises for non-2xx. Returns parsed JSON dict.
    """
    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.post(url, headers=headers, json=payload)
        r.raise_for_status()
        return r.json()


def _summary_user(filename: str, content: str) -> str:
    return (
        f"File: {filename}\n\n"
        f"{clip_chars(content, MAX_PROMPT_CHARS)}\n\n"
        "Summarize this file and its purpose."
    )


def _first_text(data: Dict[str, Any]) -> str:
    content = data.get("content") or []
    if content and isinstance(content, list):
        node = content[0]
        if isinstance(node, dict) and node.get("type") == "text":
            return str(node.get("text") or "").strip()
    return ""


class FileSummarizer:
    """
    Calls the Anthropic Messages API for a short per-file summary.

    Calls are spaced through the shared-store rate gate, so concurrent
    invocations across processes respect one window between requests.
    """

    def __init__(self, settings: Settings, gate: RateGateRepository, timeout: float = 45.0) -> None:
        if not settings.ANTHROPIC_API_KEY:
            raise ValueError("ANTHROPIC_API_KEY is required for summaries")
        self._s = settings
        self._gate = gate
        self._timeout = timeout

    async def summarize(self, filename: str, content: str) -> str:
        headers = {
            "x-api-key": self._s.ANTHROPIC_API_KEY or "",
            "anthropic-version": self._s.ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self._s.ANTHROPIC_MODEL,
            "max_tokens": 175,
            "system": self._s.SUMMARY_SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": _summary_user(filename, content)}],
            "temperature": 0.0,
        }
        await self._gate.acquire(SUMMARY_GATE, self._s.SUMMARY_RATE_WINDOW_MS)
        with timed(logger, "ai.summary", file=filename, model=self._s.ANTHROPIC_MODEL):
            data = await _post_json(
                self._s.ANTHROPIC_API_URL, headers, payload, timeout=self._timeout
            )
        summary = _first_text(data)
        logger.info("ai.summary.result file=%s chars=%d", filename, len(summary))
        return summary
