# core/github_client.py
import logging
from typing import List, Optional
from urllib.parse import quote
from core.fetcher import RetryFetcher
from model.fingerprint import FileFingerprint
from model.github import ContentEntry, RepoMetadata
from util.constants import NO_DEMO_LINK
from util.errors import RepositoryListingError

logger = logging.getLogger(__name__)


class GitHubClient:
    """
    Thin contents/commits/repo reader over the GitHub REST API.
    Every call goes through the RetryFetcher, so a FetchExhausted escapes on
    persistent provider failure.
    """

    def __init__(self, fetcher: RetryFetcher, api_url: str = "https://api.github.com") -> None:
        self._fetcher = fetcher
        self._api = api_url.rstrip("/")

    @property
    def fetcher(self) -> RetryFetcher:
        return self._fetcher

    def _repo_url(self, owner: str, repo: str) -> str:
        return f"{self._api}/repos/{quote(owner)}/{quote(repo)}"

    async def list_directory(
        self, owner: str, repo: str, path: str = "", ref: Optional[str] = None
    ) -> List[ContentEntry]:
        url = f"{self._repo_url(owner, repo)}/contents/{quote(path.strip('/'))}"
        params = {"ref": ref} if ref else None
        data = await self._fetcher.fetch_json(url, params=params)
        if not isinstance(data, list):
            # The contents API returns an object (not a list) for a single file.
            raise RepositoryListingError(
                f"Expected a directory listing for {owner}/{repo}/{path}"
            )
        entries = [ContentEntry.model_validate(item) for item in data]
        logger.debug(
            "github.list owner=%s repo=%s path=%s entries=%d",
            owner,
            repo,
            path or "/",
            len(entries),
        )
        return entries

    async def latest_fingerprint(
        self, owner: str, repo: str, path: str
    ) -> Optional[FileFingerprint]:
        url = f"{self._repo_url(owner, repo)}/commits"
        data = await self._fetcher.fetch_json(url, params={"path": path, "per_page": 1})
        if not isinstance(data, list) or not data:
            logger.info("github.commits.none owner=%s repo=%s path=%s", owner, repo, path)
            return None
        head = data[0]
        commit = head.get("commit") or {}
        committer = commit.get("committer") or {}
        return FileFingerprint(sha=str(head["sha"]), date=committer.get("date"))

    async def repo_metadata(self, owner: str, repo: str) -> RepoMetadata:
        data = await self._fetcher.fetch_json(self._repo_url(owner, repo))
        return RepoMetadata(
            name=data.get("name"),
            description=data.get("description"),
            demoLink=data.get("homepage") or NO_DEMO_LINK,
        )
