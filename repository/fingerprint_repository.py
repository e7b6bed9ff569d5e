# repository/fingerprint_repository.py
from typing import Final, Optional
from redis.asyncio import Redis
from model.fingerprint import FileFingerprint
from repository.namespaces import FINGERPRINTS

KEY_PREFIX: Final[str] = FINGERPRINTS


class FingerprintRepository:
    """
    Last-seen fingerprint per (owner, repo, path).
    Change-detection cache only: a stale entry costs duplicate work, never a wrong artifact.
    """

    def __init__(self, redis: Redis) -> None:
        self._r = redis

    @staticmethod
    def _key(owner: str, repo: str, path: str) -> str:
        return f"{KEY_PREFIX}:{owner}/{repo}:{path}"

    async def get(self, owner: str, repo: str, path: str) -> Optional[FileFingerprint]:
        raw = await self._r.get(self._key(owner, repo, path))
        if raw is None:
            return None
        try:
            return FileFingerprint.model_validate_json(raw)
        except ValueError:
            # Unreadable cache entry: treat the file as changed.
            return None

    async def put(self, owner: str, repo: str, path: str, fp: FileFingerprint) -> None:
        await self._r.set(
            self._key(owner, repo, path), fp.model_dump_json().encode("utf-8")
        )
