"""Webhook API routes.

FastAPI router that turns inbound HTTP calls into pipeline dispatches
and pipeline results into JSON responses.
"""

import logging
import re
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .handlers import WebhookJob
from .manager import WebhookManager, get_manager
from .models import DispatchFailure, DispatchResult, FailureKind, WebhookDescription
from .pipeline import INTERNAL_ERROR_MESSAGE, InboundRequest, collapse_fields

logger = logging.getLogger(__name__)

WEBHOOK_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")

router = APIRouter(tags=["webhooks"])


class BackgroundTasksQueue:
    """Job queue that runs webhook jobs after the response is sent."""

    def __init__(self, background_tasks: BackgroundTasks):
        self._tasks = background_tasks

    def submit(self, job: WebhookJob) -> None:
        self._tasks.add_task(job.handle)


async def to_inbound_request(request: Request) -> InboundRequest:
    """Read a Starlette request into a framework-neutral ``InboundRequest``."""
    return InboundRequest(
        body=await request.body(),
        headers=dict(request.headers.items()),
        query=collapse_fields(request.query_params.multi_items()),
        content_type=request.headers.get("content-type"),
    )


def render_result(result: DispatchResult) -> JSONResponse:
    """Convert a dispatch result into the JSON response sent to the caller."""
    try:
        content = jsonable_encoder(result.to_response())
    except (TypeError, ValueError):
        logger.exception("Webhook result is not JSON serializable")
        result = DispatchFailure(error=FailureKind.INTERNAL_ERROR, message=INTERNAL_ERROR_MESSAGE)
        content = result.to_response()
    return JSONResponse(content=content, status_code=result.status_code)


async def handle_webhook(
    webhook_name: str,
    request: Request,
    background_tasks: BackgroundTasks,
    manager: WebhookManager,
) -> JSONResponse:
    """Dispatch one inbound request and render the outcome."""
    if not WEBHOOK_NAME_PATTERN.match(webhook_name):
        return render_result(DispatchFailure(
            error=FailureKind.NOT_FOUND,
            message=f"Webhook '{webhook_name}' not found.",
        ))

    inbound = await to_inbound_request(request)

    # Handlers are synchronous; keep them off the event loop
    result = await run_in_threadpool(
        manager.dispatch,
        webhook_name,
        inbound,
        BackgroundTasksQueue(background_tasks),
    )
    return render_result(result)


# ============================================================================
# Webhook Endpoints
# ============================================================================

@router.get("/", response_model=List[WebhookDescription])
async def list_webhooks(manager: WebhookManager = Depends(get_manager)):
    """List registered webhooks and their payload schemas."""
    return [webhook.describe() for webhook in manager.get_registered_webhooks()]


@router.post("/{webhook_name}")
async def receive_webhook(
    webhook_name: str,
    request: Request,
    background_tasks: BackgroundTasks,
    manager: WebhookManager = Depends(get_manager),
):
    """Receive an inbound webhook for a registered name."""
    return await handle_webhook(webhook_name, request, background_tasks, manager)


def add_webhook_route(
    target: APIRouter,
    path: str,
    webhook_name: str,
    name: Optional[str] = None,
) -> None:
    """Bind a fixed POST path to a single webhook.

    Example:
        add_webhook_route(app.router, "/github", "github.push")
    """
    async def endpoint(
        request: Request,
        background_tasks: BackgroundTasks,
        manager: WebhookManager = Depends(get_manager),
    ):
        return await handle_webhook(webhook_name, request, background_tasks, manager)

    target.add_api_route(
        path,
        endpoint,
        methods=["POST"],
        name=name or f"webhook.{webhook_name}",
    )
    logger.info(f"Webhook route registered: POST {path} -> {webhook_name}")
