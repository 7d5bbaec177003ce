"""Webhook endpoints called by the agent runtime when an execution finishes.

- on-trajectory-complete: a single-execution (k = 1) unit finished
- on-thread-complete: one of the k threads of a unit finished
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status

from agent_eval.run.application.dispatch import (
    WEBHOOK_THREAD_PATH,
    WEBHOOK_TRAJECTORY_PATH,
)
from agent_eval.run.application.service import RunService
from agent_eval.run.domain.errors import RunNotFoundError
from agent_eval.run.domain.webhook import CompletionWebhook

router = APIRouter()


def get_run_service(request: Request) -> RunService:
    return request.app.state.run_service


@router.post(WEBHOOK_TRAJECTORY_PATH)
async def on_trajectory_complete(
    webhook: CompletionWebhook,
    service: RunService = Depends(get_run_service),
) -> dict[str, Any]:
    """Record a finished single execution and report run progress.

    Raises:
        HTTPException: 404 if the run does not exist.
    """
    try:
        outcome = await service.handle_trajectory_complete(webhook)
    except RunNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc

    if outcome is None:
        structlog.get_logger().info("api.webhook.cancelled", run_id=webhook.run_id)
        return {"cancelled": True}
    return {
        "success": True,
        "allDone": outcome.all_done,
        "completedCount": outcome.completed_count,
    }


@router.post(WEBHOOK_THREAD_PATH)
async def on_thread_complete(
    webhook: CompletionWebhook,
    service: RunService = Depends(get_run_service),
) -> dict[str, Any]:
    """Record a finished thread and report barrier and run progress.

    Raises:
        HTTPException: 400 without threadId/topicId, 404 if the run does not exist.
    """
    if not webhook.thread_id or not webhook.topic_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing threadId or topicId",
        )
    try:
        outcome = await service.handle_thread_complete(webhook)
    except RunNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc

    if outcome is None:
        structlog.get_logger().info("api.webhook.cancelled", run_id=webhook.run_id)
        return {"cancelled": True}
    return {
        "success": True,
        "allThreadsDone": outcome.all_threads_done,
        "allRunDone": outcome.all_run_done,
    }
