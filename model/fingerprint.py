# model/fingerprint.py
from pydantic import BaseModel


class FileFingerprint(BaseModel):
    """Latest commit touching a file; `sha` is the change-detection key."""

    sha: str
    date: str | None = None

    def matches(self, other: "FileFingerprint | None") -> bool:
        return other is not None and other.sha == self.sha
