"""Webhook endpoint: receives CMS publish notifications.

The signature covers the body exactly as sent, so the route reads the raw
bytes itself instead of letting FastAPI parse JSON.
"""

import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.dependencies import error_response, get_webhook_handler
from services.webhook_service import WebhookHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["webhook"])


@router.post("/webhook")
async def receive_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
):
    """Verify a webhook delivery and queue a test run for publish events.

    Responses:
    - 200: tests queued (jobId + polling URLs) or event ignored
    - 401: signature missing, invalid or stale
    - 500: secret not configured or unexpected error
    """
    try:
        raw_body = await request.body()
    except Exception as e:
        logger.error("Failed to read webhook body", extra={"error": str(e)}, exc_info=True)
        return error_response(500, "Internal server error", str(e))

    result = handler.handle(raw_body, request.headers)
    return JSONResponse(status_code=result.status_code, content=result.body)
