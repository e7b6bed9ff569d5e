# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "repoindex"

JOBS: Final[str] = f"{ROOT}:jobs"
GROUPS: Final[str] = f"{ROOT}:groups"
FINGERPRINTS: Final[str] = f"{ROOT}:fingerprints"
RATE: Final[str] = f"{ROOT}:rate"  # e.g., shared call-spacing windows
