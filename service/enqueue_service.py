# service/enqueue_service.py
import logging
from typing import List, Optional
from uuid import uuid4
from core.file_types import is_processable
from core.github_client import GitHubClient
from core.repo_lister import list_files
from model.job import Job
from repository.fingerprint_repository import FingerprintRepository
from repository.group_repository import GroupRepository
from repository.job_repository import JobRepository
from service.group_service import GroupService
from util.timing import timed

logger = logging.getLogger(__name__)


class EnqueueService:
    def __init__(
        self,
        jobs: JobRepository,
        groups: GroupRepository,
        fingerprints: FingerprintRepository,
        github: GitHubClient,
        barrier: Optional[GroupService] = None,
        *,
        max_depth: int = 32,
        max_nodes: int = 20_000,
    ) -> None:
        self._jobs = jobs
        self._groups = groups
        self._fingerprints = fingerprints
        self._github = github
        self._barrier = barrier
        self._max_depth = max_depth
        self._max_nodes = max_nodes

    async def enqueue(self, owner: str, repo: str) -> str:
        """
        Queue one job per processable file whose fingerprint changed and
        return the groupId shared by all of them.

        Listing errors propagate before anything is written. Each job is
        persisted before its fingerprint, so a crash in between only re-queues
        the file later. The group is sealed last; zero-job groups are
        immediately `completed`.
        """
        files = await list_files(
            self._github,
            owner,
            repo,
            max_depth=self._max_depth,
            max_nodes=self._max_nodes,
        )
        candidates = [f for f in files if is_processable(f.path)]
        logger.info(
            "enqueue.start owner=%s repo=%s files=%d processable=%d",
            owner,
            repo,
            len(files),
            len(candidates),
        )

        group_id = str(uuid4())
        created: List[Job] = []
        with timed(logger, "enqueue.jobs", group=group_id):
            for file in candidates:
                latest = await self._github.latest_fingerprint(owner, repo, file.path)
                stored = await self._fingerprints.get(owner, repo, file.path)
                if latest is not None and latest.matches(stored):
                    continue

                job = self._jobs.new(file=file, group_id=group_id, owner=owner, repo=repo)
                await self._jobs.put(job)
                await self._groups.set_member(group_id, job.id, "queued")
                if latest is not None:
                    await self._fingerprints.put(owner, repo, file.path, latest)
                created.append(job)

        await self._groups.seal(
            group_id=group_id, owner=owner, repo=repo, job_count=len(created)
        )
        if not created:
            await self._groups.set_status(group_id, "completed")
        elif self._barrier is not None:
            # Workers may have finished every job before the seal landed.
            try:
                await self._barrier.check_and_finalize(group_id)
            except Exception:
                logger.error("enqueue.barrier.error group=%s", group_id, exc_info=True)

        logger.info("enqueue.done group=%s jobs=%d", group_id, len(created))
        return group_id
