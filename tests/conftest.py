"""Shared test fixtures."""

import os

# Settings are read at import time; these must be set before any app module loads.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("GITHUB_TOKEN", "test-token")

from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from fakeredis import aioredis

from model.fingerprint import FileFingerprint
from model.github import ContentEntry, RepoMetadata
from model.job import FileInfo
from repository.fingerprint_repository import FingerprintRepository
from repository.group_repository import GroupRepository
from repository.job_repository import JobRepository


class FakeGitHub:
    """In-memory stand-in for GitHubClient with a fixed tree and commit shas."""

    def __init__(self, tree: Dict[str, List[ContentEntry]], shas: Optional[Dict[str, str]] = None):
        self.tree = tree
        self.shas = shas or {}
        self.listed: List[str] = []
        self.metadata_calls = 0
        self.fetcher: Any = None

    async def list_directory(self, owner, repo, path="", ref=None):
        self.listed.append(path)
        if path not in self.tree:
            raise RuntimeError(f"listing failed for {path!r}")
        return self.tree[path]

    async def latest_fingerprint(self, owner, repo, path):
        sha = self.shas.get(path)
        return FileFingerprint(sha=sha) if sha else None

    async def repo_metadata(self, owner, repo):
        self.metadata_calls += 1
        return RepoMetadata(name=repo, description="demo repo", demoLink="https://example.com")


def file_entry(path: str) -> ContentEntry:
    return ContentEntry(
        name=path.rsplit("/", 1)[-1],
        path=path,
        type="file",
        download_url=f"https://raw.example.com/{path}",
    )


def dir_entry(path: str) -> ContentEntry:
    return ContentEntry(name=path.rsplit("/", 1)[-1], path=path, type="dir")


def file_info(path: str) -> FileInfo:
    return FileInfo(path=path, downloadUrl=f"https://raw.example.com/{path}")


class MemoryArtifactStore:
    def __init__(self) -> None:
        self.saved: List[tuple[str, Dict[str, Any]]] = []

    async def save(self, name, document):
        self.saved.append((name, dict(document)))
        return f"memory://{name}"


@pytest_asyncio.fixture
async def redis():
    client = aioredis.FakeRedis()
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest.fixture
def jobs(redis) -> JobRepository:
    return JobRepository(redis)


@pytest.fixture
def groups(redis) -> GroupRepository:
    return GroupRepository(redis)


@pytest.fixture
def fingerprints(redis) -> FingerprintRepository:
    return FingerprintRepository(redis)


@pytest.fixture
def sample_tree() -> Dict[str, List[ContentEntry]]:
    return {
        "": [file_entry("a.js"), file_entry("b.png"), dir_entry("dir")],
        "dir": [file_entry("dir/c.json")],
    }


@pytest.fixture
def github(sample_tree) -> FakeGitHub:
    return FakeGitHub(sample_tree, shas={"a.js": "sha-a1", "b.png": "sha-b1", "dir/c.json": "sha-c1"})


@pytest.fixture
def artifacts() -> MemoryArtifactStore:
    return MemoryArtifactStore()
