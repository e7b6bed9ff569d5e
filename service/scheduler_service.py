# service/scheduler_service.py
import asyncio
import logging
from typing import List
from core.file_analyzer import ContentGenerator
from model.api import PassReport
from model.job import Job
from repository.group_repository import GroupRepository
from repository.job_repository import JobRepository
from service.group_service import GroupService
from util.enums import PassMode
from util.functions import clip_words
from util.timing import now_ms, timed

logger = logging.getLogger(__name__)


class SchedulerService:
    """
    One stateless scheduling pass per external trigger.

    Stale `in-progress` jobs are reclaimed before any queued job is started;
    at most `batch_limit` jobs run per pass and the rest wait for a later one.
    """

    def __init__(
        self,
        jobs: JobRepository,
        groups: GroupRepository,
        barrier: GroupService,
        generator: ContentGenerator,
        *,
        stale_after_seconds: int = 6 * 60,
        batch_limit: int = 50,
    ) -> None:
        self._jobs = jobs
        self._groups = groups
        self._barrier = barrier
        self._generate = generator
        self._stale_ms = int(stale_after_seconds * 1000)
        self._limit = max(1, int(batch_limit))

    def select(self, jobs: List[Job], now: int) -> tuple[PassMode, List[Job]]:
        """Pick this pass's batch from jobs already sorted oldest-first."""
        stale = [j for j in jobs if j.is_stale(now, self._stale_ms)]
        if stale:
            return PassMode.RECLAIM, stale[: self._limit]
        queued = [j for j in jobs if j.status == "queued"]
        if queued:
            return PassMode.QUEUED, queued[: self._limit]
        return PassMode.IDLE, []

    async def run_pass(self) -> PassReport:
        jobs = await self._jobs.list_all()
        mode, batch = self.select(jobs, now_ms())
        if mode is PassMode.IDLE:
            # Nothing to run; retry groups left pending by a failed finalization.
            finalized = await self._barrier.finalize_pending()
            logger.info("scheduler.idle jobs=%d finalized=%d", len(jobs), finalized)
            return PassReport(mode=mode, finalized=finalized)

        logger.info(
            "scheduler.pass mode=%s selected=%d known=%d", mode.value, len(batch), len(jobs)
        )
        with timed(logger, "scheduler.pass", mode=mode.value, n=len(batch)):
            outcomes = await asyncio.gather(*(self.process_job(j) for j in batch))
        done = sum(1 for ok in outcomes if ok)
        return PassReport(
            mode=mode, selected=len(batch), completed=done, failed=len(batch) - done
        )

    async def process_job(self, job: Job) -> bool:
        """
        Run one job to a terminal state. Errors from the generator (or the
        store) are recorded as `failed` and never raised.
        """
        try:
            await self._jobs.save_with_status(job, "in-progress")
            job.result = await self._generate(job.file)
            job.error = None
            await self._jobs.save_with_status(job, "completed")
            await self._groups.set_member(job.groupId, job.id, "completed")
        except Exception as e:
            logger.error("job.error job=%s file=%s", job.id, job.file.path, exc_info=True)
            await self._fail(job, e)
            return False

        try:
            await self._barrier.check_and_finalize(job.groupId)
        except Exception:
            # The job itself is done; an idle pass re-runs the barrier for the group.
            logger.error("job.barrier.error job=%s group=%s", job.id, job.groupId, exc_info=True)
        return True

    async def _fail(self, job: Job, error: Exception) -> None:
        job.error = clip_words(f"{type(error).__name__}: {error}", max_words=40)
        job.result = None
        try:
            # Marker first: a job record reading `failed` implies its marker does too.
            await self._groups.set_member(job.groupId, job.id, "failed")
            await self._jobs.save_with_status(job, "failed")
        except Exception:
            # Job record never reached `failed`; a later pass picks it up again.
            logger.error("job.fail.persist.error job=%s", job.id, exc_info=True)
            return
        try:
            await self._barrier.check_and_finalize(job.groupId)
        except Exception:
            logger.error("job.barrier.error job=%s group=%s", job.id, job.groupId, exc_info=True)
