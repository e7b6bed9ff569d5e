# model/github.py
from typing import Literal
from pydantic import BaseModel

EntryType = Literal["file", "dir", "symlink", "submodule"]


class ContentEntry(BaseModel):
    """One item of a contents listing; only `file` and `dir` are walked."""

    name: str
    path: str
    type: EntryType
    download_url: str | None = None


class RepoMetadata(BaseModel):
    name: str | None = None
    description: str | None = None
    demoLink: str
