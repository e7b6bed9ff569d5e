"""Group completion barrier and artifact assembly."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import file_info
from core.artifact_store import LocalArtifactStore, artifact_filename
from model.github import RepoMetadata
from repository.job_repository import JobRepository
from service.group_service import GroupService, assemble_artifact
from util.constants import NO_DEMO_LINK
from util.errors import FetchExhausted


async def _complete_group(jobs, groups, paths, group_id="g1"):
    created = []
    for path in paths:
        job = jobs.new(file=file_info(path), group_id=group_id, owner="acme", repo="web")
        job.result = {"summary": f"about {path}"}
        await jobs.save_with_status(job, "completed")
        await groups.set_member(group_id, job.id, "completed")
        created.append(job)
    await groups.seal(group_id=group_id, owner="acme", repo="web", job_count=len(created))
    return created


@pytest.mark.asyncio
async def test_three_completed_jobs_produce_one_artifact(jobs, groups, github, artifacts):
    await _complete_group(jobs, groups, ["a.js", "b.css", "docs/c.md"])
    barrier = GroupService(jobs, groups, github, artifacts)

    assert await barrier.check_and_finalize("g1") is True

    assert len(artifacts.saved) == 1
    name, doc = artifacts.saved[0]
    assert name == "acme_web-asts.json"
    assert set(doc) == {"a.js", "b.css", "docs/c.md", "metadata"}
    assert doc["a.js"] == {"summary": "about a.js"}
    assert doc["metadata"]["name"] == "web"
    assert await groups.get_status("g1") == "completed"
    assert github.metadata_calls == 1


@pytest.mark.asyncio
async def test_concurrent_barriers_finalize_once(jobs, groups, github, artifacts):
    await _complete_group(jobs, groups, ["a.js", "b.js", "c.js"])
    barrier = GroupService(jobs, groups, github, artifacts)

    results = await asyncio.gather(*(barrier.check_and_finalize("g1") for _ in range(4)))

    assert results.count(True) == 1
    assert len(artifacts.saved) == 1


@pytest.mark.asyncio
async def test_incomplete_group_is_not_finalized(jobs, groups, github, artifacts):
    await _complete_group(jobs, groups, ["a.js", "b.js"])
    await groups.set_member("g1", "pending-job", "queued")
    await groups.seal(group_id="g1", owner="acme", repo="web", job_count=3)

    assert await GroupService(jobs, groups, github, artifacts).check_and_finalize("g1") is False
    assert artifacts.saved == []
    assert await groups.get_status("g1") == "pending"


@pytest.mark.asyncio
async def test_unsealed_group_is_not_finalized(jobs, groups, github, artifacts):
    job = jobs.new(file=file_info("a.js"), group_id="g2", owner="acme", repo="web")
    await jobs.save_with_status(job, "completed")
    await groups.set_member("g2", job.id, "completed")

    assert await GroupService(jobs, groups, github, artifacts).check_and_finalize("g2") is False
    assert artifacts.saved == []


@pytest.mark.asyncio
async def test_store_failure_releases_finalization(jobs, groups, github):
    await _complete_group(jobs, groups, ["a.js"])

    class BrokenStore:
        def __init__(self):
            self.calls = 0

        async def save(self, name, document):
            self.calls += 1
            if self.calls == 1:
                raise OSError("disk full")
            return name

    store = BrokenStore()
    barrier = GroupService(jobs, groups, github, store)
    with pytest.raises(OSError):
        await barrier.check_and_finalize("g1")
    assert await groups.get_status("g1") == "pending"

    assert await barrier.check_and_finalize("g1") is True
    assert store.calls == 2


@pytest.mark.asyncio
async def test_group_view_counts_members(jobs, groups, github, artifacts):
    await _complete_group(jobs, groups, ["a.js", "b.js"])
    barrier = GroupService(jobs, groups, github, artifacts)

    view = await barrier.get_view("g1")

    assert view.sealed is True
    assert view.jobCount == 2
    assert view.members == {"completed": 2}
    assert await barrier.get_view("nope") is None


def test_reserved_metadata_key_wins():
    clash = JobRepository.new(file=file_info("metadata"), group_id="g", owner="o", repo="r")
    clash.result = "file body"
    meta = RepoMetadata(name="r", description=None, demoLink="x")

    doc = assemble_artifact([clash], meta)

    assert doc == {"metadata": meta.model_dump()}


def test_artifact_filename_escapes_separator():
    assert artifact_filename("my_org", "web_app") == "myZzDasHzZorg_webZzDasHzZapp-asts.json"


@pytest.mark.asyncio
async def test_local_store_writes_json(tmp_path):
    store = LocalArtifactStore(tmp_path / "artifacts")

    location = await store.save("acme_web-asts.json", {"a.js": {"x": 1}, "metadata": {}})

    assert (tmp_path / "artifacts" / "acme_web-asts.json").read_text(encoding="utf-8") == (
        '{"a.js": {"x": 1}, "metadata": {}}'
    )
    assert location.endswith("acme_web-asts.json")


@pytest.mark.asyncio
async def test_metadata_outage_still_writes_artifact(jobs, groups, github, artifacts):
    await _complete_group(jobs, groups, ["a.js", "b.js"])
    github.repo_metadata = AsyncMock(side_effect=FetchExhausted("https://api.github.com/repos/acme/web", 5))

    assert await GroupService(jobs, groups, github, artifacts).check_and_finalize("g1") is True

    (_, doc), = artifacts.saved
    assert set(doc) == {"a.js", "b.js", "metadata"}
    assert doc["metadata"] == {"name": "web", "description": None, "demoLink": NO_DEMO_LINK}
    assert await groups.get_status("g1") == "completed"


@pytest.mark.asyncio
async def test_completed_group_is_not_finalized_again(jobs, groups, github, artifacts):
    await _complete_group(jobs, groups, ["a.js"])
    barrier = GroupService(jobs, groups, github, artifacts)
    assert await barrier.check_and_finalize("g1") is True

    await groups.release_finalization("g1")  # lease lapsed

    assert await barrier.check_and_finalize("g1") is False
    assert len(artifacts.saved) == 1


@pytest.mark.asyncio
async def test_finalization_claim_carries_a_lease(groups, redis):
    assert await groups.claim_finalization("g1", lease_ms=50_000) is True

    assert 0 < await redis.pttl("repoindex:groups:g1:finalized") <= 50_000
    assert await groups.claim_finalization("g1") is False


@pytest.mark.asyncio
async def test_finalize_pending_sweeps_only_pending_groups(jobs, groups, github, artifacts):
    await _complete_group(jobs, groups, ["a.js"], group_id="stuck")
    await _complete_group(jobs, groups, ["b.js"], group_id="done")
    await groups.set_status("done", "completed")
    await groups.set_member("waiting", "j1", "queued")
    await groups.seal(group_id="waiting", owner="acme", repo="web", job_count=1)

    assert sorted(await groups.sealed_ids()) == ["done", "stuck", "waiting"]

    finalized = await GroupService(jobs, groups, github, artifacts).finalize_pending()

    assert finalized == 1
    assert [name for name, _ in artifacts.saved] == ["acme_web-asts.json"]
    assert await groups.get_status("stuck") == "completed"
    assert await groups.get_status("waiting") == "pending"
