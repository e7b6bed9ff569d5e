# model/job.py
from typing import Any, Literal
from pydantic import BaseModel

JobStatus = Literal[
    "queued",
    "in-progress",
    "completed",
    "failed",
]


class FileInfo(BaseModel):
    path: str
    downloadUrl: str


class Job(BaseModel):
    id: str
    file: FileInfo
    groupId: str
    owner: str
    repo: str
    status: JobStatus = "queued"
    result: Any = None
    error: str | None = None
    createdAt: int
    updatedAt: int

    def is_stale(self, now_ms: int, threshold_ms: int) -> bool:
        return self.status == "in-progress" and now_ms - self.updatedAt > threshold_ms
