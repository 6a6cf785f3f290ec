"""
Chat API Endpoints

Relays dashboard chat messages to the automation webhook.
"""

from fastapi import APIRouter, Depends

from crm.chat import ChatInput, ChatResponse, WebhookChatClient, WebhookHealth
from crm.serving.api.dependencies import get_chat_client

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def send_chat_message(
    payload: ChatInput,
    client: WebhookChatClient = Depends(get_chat_client),
) -> ChatResponse:
    """Always answers 200; delivery failures come back with ``success: false``."""
    return await client.send_message(payload)


@router.get("/health", response_model=WebhookHealth)
async def chat_health(client: WebhookChatClient = Depends(get_chat_client)) -> WebhookHealth:
    return await client.check_health()
