# controller/process_controller.py
from fastapi import APIRouter, Depends
from controller.controller_dependencies import (
    get_group_service,
    get_scheduler_service,
    verify_cron_secret,
)
from model.api import FinalizeResponse, ProcessResponse
from model.group import GroupView
from service.group_service import GroupService
from service.scheduler_service import SchedulerService
from util.constants import InternalURIs
from util.enums import ErrorMessage
from util.errors import AppError

process_router = APIRouter()


@process_router.get(
    InternalURIs.PROCESS,
    response_model=ProcessResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def process_jobs(
    service: SchedulerService = Depends(get_scheduler_service),
) -> ProcessResponse:
    report = await service.run_pass()
    return ProcessResponse(**report.model_dump())


@process_router.post(
    InternalURIs.FINALIZE_GROUP,
    response_model=FinalizeResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def finalize_group(
    group_id: str,
    service: GroupService = Depends(get_group_service),
) -> FinalizeResponse:
    return FinalizeResponse(finalized=await service.check_and_finalize(group_id))


@process_router.get(InternalURIs.GROUP, response_model=GroupView)
async def group_status(
    group_id: str,
    service: GroupService = Depends(get_group_service),
) -> GroupView:
    view = await service.get_view(group_id)
    if view is None:
        raise AppError.of(ErrorMessage.GROUP_NOT_FOUND)
    return view
