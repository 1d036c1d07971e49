"""
Webhook routes for inbound chat platform updates.

Platforms POST raw updates here; we parse, route, and return 200.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.commands.webhooks.telegram_command import TelegramWebhookCommand
from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/telegram")
async def telegram_webhook(
    request: Request,
    app_state: AppState = Depends(get_app_state),
) -> dict[str, str]:
    """
    Receive Telegram webhook updates and route commands and button presses.
    Validate X-Telegram-Bot-Api-Secret-Token if TELEGRAM_WEBHOOK_SECRET is set.
    """
    try:
        body = await request.json()
    except Exception as e:
        logger.warning("Telegram webhook invalid JSON: %s", e)
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    return await TelegramWebhookCommand(app_state).execute(request, body)
