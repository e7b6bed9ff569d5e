# core/file_types.py
from pathlib import PurePosixPath
from typing import Dict, Final
from util.enums import FileCategory

_BY_EXTENSION: Final[Dict[str, FileCategory]] = {
    **dict.fromkeys(
        (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".py"), FileCategory.SOURCE
    ),
    ".json": FileCategory.DATA,
    ".html": FileCategory.MARKUP,
    ".htm": FileCategory.MARKUP,
    ".css": FileCategory.STYLE,
    ".md": FileCategory.DOCS,
    # images, video, fonts
    **dict.fromkeys(
        (
            ".mp4", ".avi", ".mov", ".wmv", ".webm",
            ".gif", ".png", ".jpg", ".jpeg", ".tiff", ".svg", ".bmp", ".webp", ".ico",
            ".ttf", ".otf", ".woff", ".woff2",
        ),
        FileCategory.NON_PROCESSABLE,
    ),
}


def classify(path: str) -> FileCategory:
    """Extension-based category; unknown extensions are OTHER (still processable)."""
    ext = PurePosixPath(path).suffix.lower()
    return _BY_EXTENSION.get(ext, FileCategory.OTHER)


def is_processable(path: str) -> bool:
    return classify(path) is not FileCategory.NON_PROCESSABLE
