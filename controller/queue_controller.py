# controller/queue_controller.py
import logging
from fastapi import APIRouter, Depends, status
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from controller.controller_dependencies import get_enqueue_service
from model.api import QueueRequest, QueueResponse
from service.enqueue_service import EnqueueService
from util.constants import InternalURIs
from util.enums import ErrorMessage
from util.errors import AppError, FetchExhausted, RepositoryListingError

logger = logging.getLogger(__name__)

queue_router = APIRouter(
    dependencies=[
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
            )
        )
    ]
)


@queue_router.post(
    InternalURIs.QUEUE,
    response_model=QueueResponse,
    status_code=status.HTTP_201_CREATED,
)
async def queue_repository(
    payload: QueueRequest,
    service: EnqueueService = Depends(get_enqueue_service),
) -> QueueResponse:
    try:
        group_id = await service.enqueue(payload.owner, payload.repo)
    except (FetchExhausted, RepositoryListingError) as e:
        logger.error("queue.failed owner=%s repo=%s err=%s", payload.owner, payload.repo, e)
        raise AppError.of(ErrorMessage.UPSTREAM_ERROR) from e
    return QueueResponse(groupId=group_id)
