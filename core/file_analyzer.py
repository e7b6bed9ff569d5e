# core/file_analyzer.py
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol
from core.fetcher import RetryFetcher
from core.file_types import classify
from model.job import FileInfo
from util.enums import FileCategory
from util.types import AnalysisResult, SchemaNode

logger = logging.getLogger(__name__)

# The scheduler only needs "file in, JSON-able result out".
ContentGenerator = Callable[[FileInfo], Awaitable[Any]]


class Summarizer(Protocol):
    async def summarize(self, filename: str, content: str) -> str: ...


def _json_type(value: Any) -> str:
    if isinstance(value, list):
        return "array"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, dict):
        return "object"
    return "string"


def derive_schema(obj: Dict[str, Any]) -> Dict[str, SchemaNode]:
    """Shape of a JSON object: {key: {type, properties?}} recursing into objects."""
    schema: Dict[str, SchemaNode] = {}
    for key, value in obj.items():
        node: SchemaNode = {"type": _json_type(value)}  # type: ignore[typeddict-item]
        if isinstance(value, dict):
            node["properties"] = derive_schema(value)
        schema[key] = node
    return schema


def json_structure(text: str) -> Dict[str, Any]:
    parsed = json.loads(text)
    if isinstance(parsed, dict):
        return {"type": "object", "properties": derive_schema(parsed)}
    return {"type": _json_type(parsed)}


class FileAnalyzer:
    """
    Default content generator: fetch the file, classify it, derive structure
    for data files, and optionally attach a model-written summary.
    Malformed data files raise, which fails the job.
    """

    def __init__(self, fetcher: RetryFetcher, summarizer: Optional[Summarizer] = None) -> None:
        self._fetcher = fetcher
        self._summarizer = summarizer

    async def __call__(self, file: FileInfo) -> AnalysisResult:
        content = await self._fetcher.fetch_text(file.downloadUrl)
        category = classify(file.path)

        structure: Optional[Dict[str, Any]] = None
        if category is FileCategory.DATA:
            structure = json_structure(content)

        summary = ""
        if self._summarizer is not None:
            summary = await self._summarizer.summarize(file.path, content)

        logger.info(
            "analyze.ok file=%s type=%s chars=%d", file.path, category.value, len(content)
        )
        return AnalysisResult(
            file=file.path,
            type=category.value,
            structure=structure,
            summary=summary,
            sourceCode=content,
        )
