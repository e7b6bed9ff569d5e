# core/repo_lister.py
import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from core.fetcher import RetryFetcher
from core.github_client import GitHubClient
from model.job import FileInfo
from util.errors import TraversalLimitExceeded
from util.timing import timed

logger = logging.getLogger(__name__)

_TREE_URL = re.compile(
    r"^(?:https?://github\.com/)?(?P<owner>[^/]+)/(?P<repo>[^/]+)"
    r"(?:/tree/(?P<ref>[^/]+)(?:/(?P<path>.*))?)?/?$"
)


@dataclass(frozen=True)
class RepoTarget:
    owner: str
    repo: str
    ref: str = "main"
    path: str = ""


def parse_repo_url(url: str) -> RepoTarget:
    """
    Accepts `https://github.com/{owner}/{repo}[/tree/{ref}[/{path}]]`.
    Ref defaults to `main`, path to the repository root.
    """
    m = _TREE_URL.match(url.strip())
    if not m:
        raise ValueError(f"Unsupported repository URL: {url!r}")
    repo = m.group("repo")
    if repo.endswith(".git"):
        repo = repo[:-4]
    return RepoTarget(
        owner=m.group("owner"),
        repo=repo,
        ref=m.group("ref") or "main",
        path=(m.group("path") or "").strip("/"),
    )


class TraversalGuard:
    """Bounds recursion depth and the total number of visited entries."""

    def __init__(self, max_depth: int, max_nodes: int) -> None:
        self.max_depth = max_depth
        self.max_nodes = max_nodes
        self.visited = 0

    def enter(self, depth: int, path: str) -> None:
        if depth > self.max_depth:
            raise TraversalLimitExceeded(
                f"Directory {path!r} exceeds max depth {self.max_depth}"
            )

    def count(self, n: int) -> None:
        self.visited += n
        if self.visited > self.max_nodes:
            raise TraversalLimitExceeded(
                f"Repository tree exceeds {self.max_nodes} entries"
            )


async def list_files(
    client: GitHubClient,
    owner: str,
    repo: str,
    path: str = "",
    *,
    ref: Optional[str] = None,
    max_depth: int = 32,
    max_nodes: int = 20_000,
) -> List[FileInfo]:
    """
    Depth-first walk returning every regular file under `path`.
    Any listing failure, in any subdirectory, aborts the whole walk.
    """
    guard = TraversalGuard(max_depth, max_nodes)
    out: List[FileInfo] = []

    async def _walk(dir_path: str, depth: int) -> None:
        guard.enter(depth, dir_path)
        entries = await client.list_directory(owner, repo, dir_path, ref)
        guard.count(len(entries))
        for item in entries:
            if item.type == "file" and item.download_url:
                out.append(FileInfo(path=item.path, downloadUrl=item.download_url))
            elif item.type == "dir":
                await _walk(item.path, depth + 1)

    with timed(logger, "lister.walk", owner=owner, repo=repo):
        await _walk(path, 0)
    logger.info("lister.files owner=%s repo=%s count=%d", owner, repo, len(out))
    return out


async def checkout(
    client: GitHubClient,
    fetcher: RetryFetcher,
    target: RepoTarget,
    dest: Path,
    *,
    max_depth: int = 32,
    max_nodes: int = 20_000,
) -> int:
    """
    Mirror `target` into `dest`. Each local directory is created before
    anything beneath it is downloaded. Returns the number of files written.
    """
    guard = TraversalGuard(max_depth, max_nodes)
    written = 0

    async def _mirror(remote: str, local: Path, depth: int) -> None:
        nonlocal written
        guard.enter(depth, remote)
        entries = await client.list_directory(target.owner, target.repo, remote, target.ref)
        guard.count(len(entries))
        await asyncio.to_thread(local.mkdir, parents=True, exist_ok=True)
        for item in entries:
            if item.type == "file" and item.download_url:
                file_path = local / item.name
                logger.debug("checkout.file url=%s dest=%s", item.download_url, file_path)
                await fetcher.download(item.download_url, file_path)
                written += 1
            elif item.type == "dir":
                await _mirror(item.path, local / item.name, depth + 1)

    with timed(logger, "checkout", repo=f"{target.owner}/{target.repo}", ref=target.ref):
        await _mirror(target.path, Path(dest), 0)
    return written

