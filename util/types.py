# util/types.py
from typing import Any, Dict, Literal, Optional, TypedDict


SchemaType = Literal["string", "number", "boolean", "null", "array", "object"]


class SchemaNode(TypedDict, total=False):
    type: SchemaType
    properties: Dict[str, "SchemaNode"]


class AnalysisResult(TypedDict):
    file: str
    type: str
    structure: Optional[Dict[str, Any]]
    summary: str
    sourceCode: str
