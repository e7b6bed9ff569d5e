# model/group.py
from typing import Dict, Literal
from pydantic import BaseModel

MemberStatus = Literal["queued", "completed", "failed"]
GroupStatus = Literal["pending", "completed", "failed"]


class GroupRecord(BaseModel):
    """
    Written once, when the enqueuer has registered every member ("sealed").
    Membership never grows after this record exists.
    """

    groupId: str
    owner: str
    repo: str
    jobCount: int
    createdAt: int


class GroupView(BaseModel):
    groupId: str
    status: GroupStatus
    sealed: bool
    jobCount: int
    members: Dict[str, int]
