# controller/controller_dependencies.py
import secrets
from typing import AsyncIterator, Optional
import httpx
from fastapi import Depends, Header
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from core.anthropic_client import FileSummarizer
from core.artifact_store import LocalArtifactStore
from core.fetcher import RetryFetcher, build_http_client
from core.file_analyzer import FileAnalyzer
from core.github_client import GitHubClient
from repository.fingerprint_repository import FingerprintRepository
from repository.group_repository import GroupRepository
from repository.job_repository import JobRepository
from repository.rate_gate_repository import RateGateRepository
from service.enqueue_service import EnqueueService
from service.group_service import GroupService
from service.scheduler_service import SchedulerService
from util.enums import ErrorMessage
from util.errors import AppError


async def verify_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    # Runs before any other dependency of the route touches Redis or the provider.
    expected = f"Bearer {settings.CRON_SECRET}"
    if not authorization or not secrets.compare_digest(authorization, expected):
        raise AppError.of(ErrorMessage.UNAUTHORIZED)


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with build_http_client(settings) as client:
        yield client


def get_fetcher(client: httpx.AsyncClient = Depends(get_http_client)) -> RetryFetcher:
    return RetryFetcher(
        client,
        max_attempts=settings.FETCH_MAX_ATTEMPTS,
        backoff_seconds=settings.FETCH_BACKOFF_SECONDS,
    )


def get_github_client(fetcher: RetryFetcher = Depends(get_fetcher)) -> GitHubClient:
    return GitHubClient(fetcher, settings.GITHUB_API_URL)


def get_group_service(
    redis: Redis = Depends(get_redis),
    github: GitHubClient = Depends(get_github_client),
) -> GroupService:
    return GroupService(
        JobRepository(redis),
        GroupRepository(redis),
        github,
        LocalArtifactStore(settings.ARTIFACT_DIR),
    )


def get_enqueue_service(
    redis: Redis = Depends(get_redis),
    github: GitHubClient = Depends(get_github_client),
    barrier: GroupService = Depends(get_group_service),
) -> EnqueueService:
    return EnqueueService(
        JobRepository(redis),
        GroupRepository(redis),
        FingerprintRepository(redis),
        github,
        barrier,
        max_depth=settings.MAX_TREE_DEPTH,
        max_nodes=settings.MAX_TREE_NODES,
    )


def get_scheduler_service(
    redis: Redis = Depends(get_redis),
    github: GitHubClient = Depends(get_github_client),
    barrier: GroupService = Depends(get_group_service),
) -> SchedulerService:
    summarizer = None
    if settings.ANTHROPIC_API_KEY:
        summarizer = FileSummarizer(settings, RateGateRepository(redis))
    return SchedulerService(
        JobRepository(redis),
        GroupRepository(redis),
        barrier,
        FileAnalyzer(github.fetcher, summarizer),
        stale_after_seconds=settings.STALE_JOB_SECONDS,
        batch_limit=settings.PROCESS_BATCH_LIMIT,
    )
