# repository/job_repository.py
import asyncio
from typing import Final, List, Optional
from uuid import uuid4
from redis.asyncio import Redis
from model.job import FileInfo, Job, JobStatus
from repository.namespaces import JOBS
from util.timing import now_ms
import logging

KEY_PREFIX: Final[str] = JOBS
logger = logging.getLogger(__name__)


class JobRepository:
    """
    One JSON value per job under `repoindex:jobs:{id}`.

    Every write is a full-value overwrite of that key; concurrent writers race
    and the last one wins.
    """

    def __init__(self, redis: Redis) -> None:
        self._r = redis

    @staticmethod
    def _key(job_id: str) -> str:
        return f"{KEY_PREFIX}:{job_id}"

    # ---------------- Core CRUD ----------------

    @staticmethod
    def new(*, file: FileInfo, group_id: str, owner: str, repo: str) -> Job:
        ts = now_ms()
        return Job(
            id=str(uuid4()),
            file=file,
            groupId=group_id,
            owner=owner,
            repo=repo,
            status="queued",
            createdAt=ts,
            updatedAt=ts,
        )

    async def put(self, job: Job) -> None:
        await self._r.set(self._key(job.id), job.model_dump_json().encode("utf-8"))

    async def get(self, job_id: str) -> Optional[Job]:
        if not job_id:
            return None
        raw = await self._r.get(self._key(job_id))
        if raw is None:
            return None
        return Job.model_validate_json(raw)

    async def get_many(self, job_ids: List[str]) -> List[Job]:
        found = await asyncio.gather(*(self.get(j) for j in job_ids))
        return [j for j in found if j is not None]

    async def list_all(self) -> List[Job]:
        """
        SCAN every job key and return the jobs oldest-`updatedAt` first.
        Undecodable values are logged and skipped so one bad key cannot stall
        the scheduler.
        """
        keys = [k async for k in self._r.scan_iter(match=f"{KEY_PREFIX}:*")]
        if not keys:
            return []
        raws = await self._r.mget(keys)
        jobs: List[Job] = []
        for key, raw in zip(keys, raws):
            if raw is None:
                continue
            try:
                jobs.append(Job.model_validate_json(raw))
            except ValueError:
                logger.warning("jobs.decode.error key=%s", _text(key))
        jobs.sort(key=lambda j: j.updatedAt)
        return jobs

    # ---------------- Status helpers ----------------

    async def save_with_status(self, job: Job, status: JobStatus) -> Job:
        """Set status, refresh updatedAt, and overwrite the stored job."""
        job.status = status
        job.updatedAt = now_ms()
        await self.put(job)
        return job


def _text(v: object) -> str:
    return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)
