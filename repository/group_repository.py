# repository/group_repository.py
from typing import Dict, Final, List, Optional
from redis.asyncio import Redis
from model.group import GroupRecord, GroupStatus, MemberStatus
from repository.namespaces import GROUPS
from util.timing import now_ms

KEY_PREFIX: Final[str] = GROUPS
# A finalizer that dies mid-assembly stops blocking the group after this.
FINALIZE_LEASE_MS: Final[int] = 10 * 60 * 1000


class GroupRepository:
    """
    Flow:
    - One membership marker per (groupId, jobId) mirroring the job's terminal status.
    - A GroupRecord written once the enqueuer has registered every member (sealing).
    - An explicit group status (pending|completed|failed); absent reads as pending.
    - A finalization marker claimed with SET NX so one invocation assembles the artifact.
    """

    def __init__(self, redis: Redis) -> None:
        self._r = redis

    @staticmethod
    def _member_key(group_id: str, job_id: str) -> str:
        return f"{KEY_PREFIX}:{group_id}:members:{job_id}"

    @staticmethod
    def _record_key(group_id: str) -> str:
        return f"{KEY_PREFIX}:{group_id}:record"

    @staticmethod
    def _status_key(group_id: str) -> str:
        return f"{KEY_PREFIX}:{group_id}:status"

    @staticmethod
    def _finalized_key(group_id: str) -> str:
        return f"{KEY_PREFIX}:{group_id}:finalized"

    # ---------------- Membership ----------------

    async def set_member(self, group_id: str, job_id: str, status: MemberStatus) -> None:
        await self._r.set(self._member_key(group_id, job_id), status)

    async def members(self, group_id: str) -> Dict[str, MemberStatus]:
        """Return {jobId: status} for every marker of the group."""
        prefix = self._member_key(group_id, "")
        keys = [k async for k in self._r.scan_iter(match=f"{prefix}*")]
        if not keys:
            return {}
        vals = await self._r.mget(keys)
        out: Dict[str, MemberStatus] = {}
        for key, val in zip(keys, vals):
            if val is None:
                continue
            out[_text(key)[len(prefix):]] = _text(val)  # type: ignore[assignment]
        return out

    # ---------------- Record / status ----------------

    async def seal(self, *, group_id: str, owner: str, repo: str, job_count: int) -> GroupRecord:
        record = GroupRecord(
            groupId=group_id,
            owner=owner,
            repo=repo,
            jobCount=job_count,
            createdAt=now_ms(),
        )
        await self._r.set(self._record_key(group_id), record.model_dump_json().encode("utf-8"))
        return record

    async def get_record(self, group_id: str) -> Optional[GroupRecord]:
        raw = await self._r.get(self._record_key(group_id))
        if raw is None:
            return None
        return GroupRecord.model_validate_json(raw)

    async def sealed_ids(self) -> List[str]:
        """groupIds of every sealed group, in SCAN order."""
        head, tail = f"{KEY_PREFIX}:", ":record"
        out: List[str] = []
        async for key in self._r.scan_iter(match=f"{head}*{tail}"):
            k = _text(key)
            out.append(k[len(head): -len(tail)])
        return out

    async def set_status(self, group_id: str, status: GroupStatus) -> None:
        await self._r.set(self._status_key(group_id), status)

    async def get_status(self, group_id: str) -> GroupStatus:
        v = await self._r.get(self._status_key(group_id))
        if v is None:
            return "pending"
        return _text(v)  # type: ignore[return-value]

    # ---------------- Finalization marker ----------------

    async def claim_finalization(
        self, group_id: str, lease_ms: int = FINALIZE_LEASE_MS
    ) -> bool:
        """True for exactly one caller until the marker is released or its lease lapses."""
        ok = await self._r.set(
            self._finalized_key(group_id), str(now_ms()), nx=True, px=lease_ms
        )
        return bool(ok)

    async def release_finalization(self, group_id: str) -> None:
        await self._r.delete(self._finalized_key(group_id))


def _text(v: object) -> str:
    return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)
