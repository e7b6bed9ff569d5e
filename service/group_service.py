# service/group_service.py
import logging
from collections import Counter
from typing import Any, Dict, Iterable, Optional
from core.artifact_store import ArtifactStore, artifact_filename
from core.github_client import GitHubClient
from model.github import RepoMetadata
from model.group import GroupRecord, GroupView
from model.job import Job
from repository.group_repository import GroupRepository
from repository.job_repository import JobRepository
from util.constants import METADATA_KEY, NO_DEMO_LINK
from util.errors import FetchExhausted
from util.timing import timed

logger = logging.getLogger(__name__)


def assemble_artifact(jobs: Iterable[Job], metadata: RepoMetadata) -> Dict[str, Any]:
    """
    One entry per job (file path -> result) plus the reserved `metadata` entry.
    """
    doc: Dict[str, Any] = {}
    for job in jobs:
        if job.file.path == METADATA_KEY:
            logger.warning("artifact.key.shadowed path=%s group=%s", job.file.path, job.groupId)
            continue
        doc[job.file.path] = job.result
    doc[METADATA_KEY] = metadata.model_dump()
    return doc


class GroupService:
    """
    Completion barrier for a group of jobs.

    Runs after every job completion. Finalizes only a sealed group whose
    every marker reads `completed`; the SET NX finalization marker elects a
    single finalizer when the last jobs complete concurrently.
    """

    def __init__(
        self,
        jobs: JobRepository,
        groups: GroupRepository,
        github: GitHubClient,
        artifacts: ArtifactStore,
    ) -> None:
        self._jobs = jobs
        self._groups = groups
        self._github = github
        self._artifacts = artifacts

    async def check_and_finalize(self, group_id: str) -> bool:
        record = await self._groups.get_record(group_id)
        if record is None:
            logger.debug("barrier.unsealed group=%s", group_id)
            return False

        members = await self._groups.members(group_id)
        statuses = Counter(members.values())
        if statuses.get("failed"):
            if await self._groups.get_status(group_id) != "failed":
                logger.warning(
                    "barrier.group.failed group=%s failed=%d", group_id, statuses["failed"]
                )
                await self._groups.set_status(group_id, "failed")
            return False

        if len(members) != record.jobCount or statuses.get("completed", 0) != len(members):
            logger.debug(
                "barrier.waiting group=%s done=%d total=%d",
                group_id,
                statuses.get("completed", 0),
                record.jobCount,
            )
            return False

        if record.jobCount == 0:
            return False

        if await self._groups.get_status(group_id) == "completed":
            logger.debug("barrier.finalize.skipped group=%s reason=completed", group_id)
            return False

        if not await self._groups.claim_finalization(group_id):
            logger.info("barrier.finalize.skipped group=%s reason=claimed", group_id)
            return False

        try:
            with timed(logger, "barrier.finalize", group=group_id, jobs=record.jobCount):
                jobs = await self._jobs.get_many(list(members))
                metadata = await self._metadata(record)
                document = assemble_artifact(jobs, metadata)
                location = await self._artifacts.save(
                    artifact_filename(record.owner, record.repo), document
                )
                await self._groups.set_status(group_id, "completed")
        except Exception:
            logger.error("barrier.finalize.error group=%s", group_id, exc_info=True)
            await self._groups.release_finalization(group_id)
            raise

        logger.info("barrier.finalized group=%s artifact=%s", group_id, location)
        return True

    async def _metadata(self, record: GroupRecord) -> RepoMetadata:
        try:
            return await self._github.repo_metadata(record.owner, record.repo)
        except FetchExhausted as e:
            # Placeholder metadata; the artifact is still written.
            logger.warning(
                "barrier.metadata.unavailable group=%s owner=%s repo=%s err=%s",
                record.groupId,
                record.owner,
                record.repo,
                e,
            )
            return RepoMetadata(name=record.repo, demoLink=NO_DEMO_LINK)

    async def finalize_pending(self) -> int:
        """
        Re-run the barrier for every sealed group still `pending`.

        Picks up groups whose last job completed while finalization failed,
        which no job completion will ever revisit. Errors are logged per
        group; returns how many groups were finalized.
        """
        finalized = 0
        for group_id in await self._groups.sealed_ids():
            if await self._groups.get_status(group_id) != "pending":
                continue
            try:
                if await self.check_and_finalize(group_id):
                    finalized += 1
            except Exception:
                logger.error("barrier.sweep.error group=%s", group_id, exc_info=True)
        if finalized:
            logger.info("barrier.sweep finalized=%d", finalized)
        return finalized

    async def get_view(self, group_id: str) -> Optional[GroupView]:
        record = await self._groups.get_record(group_id)
        members = await self._groups.members(group_id)
        if record is None and not members:
            return None
        return GroupView(
            groupId=group_id,
            status=await self._groups.get_status(group_id),
            sealed=record is not None,
            jobCount=record.jobCount if record else len(members),
            members=dict(Counter(members.values())),
        )
