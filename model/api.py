# model/api.py
from pydantic import BaseModel, Field
from util.enums import PassMode


class QueueRequest(BaseModel):
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)


class QueueResponse(BaseModel):
    success: bool = True
    groupId: str


class PassReport(BaseModel):
    mode: PassMode
    selected: int = 0
    completed: int = 0
    failed: int = 0
    finalized: int = 0


class ProcessResponse(PassReport):
    success: bool = True


class FinalizeResponse(BaseModel):
    success: bool = True
    finalized: bool
