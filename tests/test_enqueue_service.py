"""Enqueue: change detection, filtering, group sealing."""

import pytest

from conftest import FakeGitHub, file_entry
from model.fingerprint import FileFingerprint
from service.enqueue_service import EnqueueService
from service.group_service import GroupService


def _service(jobs, groups, fingerprints, github, barrier=None):
    return EnqueueService(jobs, groups, fingerprints, github, barrier)


@pytest.mark.asyncio
async def test_media_files_are_excluded(jobs, groups, fingerprints, github):
    group_id = await _service(jobs, groups, fingerprints, github).enqueue("acme", "web")

    created = await jobs.list_all()
    assert sorted(j.file.path for j in created) == ["a.js", "dir/c.json"]
    assert {j.groupId for j in created} == {group_id}
    assert all(j.status == "queued" for j in created)
    assert all(j.owner == "acme" and j.repo == "web" for j in created)

    members = await groups.members(group_id)
    assert sorted(members) == sorted(j.id for j in created)
    assert set(members.values()) == {"queued"}

    assert (await fingerprints.get("acme", "web", "a.js")).sha == "sha-a1"
    assert (await fingerprints.get("acme", "web", "dir/c.json")).sha == "sha-c1"
    assert await fingerprints.get("acme", "web", "b.png") is None


@pytest.mark.asyncio
async def test_n_files_without_fingerprints_make_n_jobs(jobs, groups, fingerprints):
    tree = {"": [file_entry(f"src/m{i}.ts") for i in range(7)]}
    gh = FakeGitHub(tree, shas={f"src/m{i}.ts": f"s{i}" for i in range(7)})

    group_id = await _service(jobs, groups, fingerprints, gh).enqueue("acme", "web")

    assert len(await jobs.list_all()) == 7
    assert len(await groups.members(group_id)) == 7
    for i in range(7):
        assert (await fingerprints.get("acme", "web", f"src/m{i}.ts")).sha == f"s{i}"
    record = await groups.get_record(group_id)
    assert record.jobCount == 7
    assert await groups.get_status(group_id) == "pending"


@pytest.mark.asyncio
async def test_rerun_with_same_fingerprints_is_a_noop(jobs, groups, fingerprints, github):
    service = _service(jobs, groups, fingerprints, github)
    await service.enqueue("acme", "web")

    second = await service.enqueue("acme", "web")

    assert len(await jobs.list_all()) == 2
    assert await groups.members(second) == {}
    assert (await groups.get_record(second)).jobCount == 0
    assert await groups.get_status(second) == "completed"


@pytest.mark.asyncio
async def test_only_changed_files_are_requeued(jobs, groups, fingerprints, github):
    await fingerprints.put("acme", "web", "a.js", FileFingerprint(sha="sha-a1"))
    await fingerprints.put("acme", "web", "dir/c.json", FileFingerprint(sha="old"))

    group_id = await _service(jobs, groups, fingerprints, github).enqueue("acme", "web")

    created = await jobs.list_all()
    assert [j.file.path for j in created] == ["dir/c.json"]
    assert created[0].groupId == group_id
    assert (await fingerprints.get("acme", "web", "dir/c.json")).sha == "sha-c1"


@pytest.mark.asyncio
async def test_file_without_commit_history_is_queued_without_fingerprint(jobs, groups, fingerprints):
    gh = FakeGitHub({"": [file_entry("new.md")]}, shas={})

    await _service(jobs, groups, fingerprints, gh).enqueue("acme", "web")

    assert [j.file.path for j in await jobs.list_all()] == ["new.md"]
    assert await fingerprints.get("acme", "web", "new.md") is None


@pytest.mark.asyncio
async def test_listing_failure_writes_nothing(jobs, groups, fingerprints, redis):
    gh = FakeGitHub({})

    with pytest.raises(RuntimeError):
        await _service(jobs, groups, fingerprints, gh).enqueue("acme", "web")

    assert await redis.keys("*") == []


@pytest.mark.asyncio
async def test_seal_runs_barrier_for_groups_finished_early(jobs, groups, fingerprints, github, artifacts):
    barrier = GroupService(jobs, groups, github, artifacts)
    calls = []

    async def spy(group_id):
        calls.append(group_id)
        return False

    barrier.check_and_finalize = spy  # type: ignore[method-assign]
    group_id = await _service(jobs, groups, fingerprints, github, barrier).enqueue("acme", "web")

    assert calls == [group_id]
