# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class FileCategory(str, Enum):
    SOURCE = "source"
    DATA = "data"
    MARKUP = "markup"
    STYLE = "style"
    DOCS = "docs"
    NON_PROCESSABLE = "non-processable"
    OTHER = "other"


class PassMode(str, Enum):
    RECLAIM = "reclaim"
    QUEUED = "queued"
    IDLE = "idle"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    UNAUTHORIZED = ErrorInfo("Unauthorized", status.HTTP_401_UNAUTHORIZED)
    UPSTREAM_ERROR = ErrorInfo(
        "Repository provider request failed", status.HTTP_502_BAD_GATEWAY
    )
    GROUP_NOT_FOUND = ErrorInfo("Unknown groupId", status.HTTP_404_NOT_FOUND)
