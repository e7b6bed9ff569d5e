# core/artifact_store.py
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Protocol
from util.functions import escape_underscores

logger = logging.getLogger(__name__)


def artifact_filename(owner: str, repo: str) -> str:
    return f"{escape_underscores(owner)}_{escape_underscores(repo)}-asts.json"


class ArtifactStore(Protocol):
    async def save(self, name: str, document: Mapping[str, Any]) -> str: ...


class LocalArtifactStore:
    """
    Writes each finalized group document as JSON under `directory`.
    Re-saving the same name overwrites it.
    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    def _write(self, name: str, document: Mapping[str, Any]) -> Path:
        self._dir.mkdir(parents=True, exist_ok=True)
        target = self._dir / name
        tmp = target.with_suffix(target.suffix + ".tmp")
        tmp.write_text(json.dumps(document, ensure_ascii=False, default=str), encoding="utf-8")
        tmp.replace(target)
        return target

    async def save(self, name: str, document: Mapping[str, Any]) -> str:
        path = await asyncio.to_thread(self._write, name, document)
        logger.info("artifact.saved path=%s entries=%d", path, len(document))
        return str(path)
