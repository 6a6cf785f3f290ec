"""
Chat Webhook Client

Relays dashboard chat messages to an external automation webhook and
reports whether that webhook is reachable. Failures are returned as
unsuccessful responses rather than raised, so the API can always answer.
"""

from typing import Any, Dict, Optional

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger(__name__)

NO_RESPONSE = "No response received"


class ChatInput(BaseModel):
    """Message sent to the webhook, serialised with camelCase keys."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    chat_input: str = Field(alias="chatInput", min_length=1)


class ChatResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None


class WebhookHealth(BaseModel):
    is_online: bool
    error: Optional[str] = None


def extract_reply(payload: Any) -> str:
    """Reply text: ``output.chatOutput``, then ``message``, then a placeholder."""
    if not isinstance(payload, dict):
        return NO_RESPONSE
    output = payload.get("output")
    if isinstance(output, dict) and output.get("chatOutput"):
        return str(output["chatOutput"])
    if payload.get("message"):
        return str(payload["message"])
    return NO_RESPONSE


class WebhookChatClient:
    """
    Async client for the chat webhook.

    Example:
        client = WebhookChatClient(webhook_url, health_url)
        response = await client.send_message(ChatInput(sessionId="s1", chatInput="hi"))
        await client.close()
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        health_url: Optional[str] = None,
        timeout: float = 30.0,
        health_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.health_url = health_url
        self.timeout = timeout
        self.health_timeout = health_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send_message(self, chat_input: ChatInput) -> ChatResponse:
        if not self.webhook_url:
            logger.error("Chat webhook URL not configured")
            return ChatResponse(success=False, message="Chat webhook URL not configured")

        try:
            response = await self.client.post(
                self.webhook_url,
                json=chat_input.model_dump(by_alias=True),
            )
        except httpx.RequestError as e:
            logger.error("Chat webhook request failed", error=str(e))
            return ChatResponse(success=False, message=f"Failed to reach chat webhook: {e}")

        if response.is_error:
            logger.error("Chat webhook returned error", status_code=response.status_code)
            return ChatResponse(
                success=False,
                message=f"Failed to send message: {response.reason_phrase or response.status_code}",
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Chat webhook returned non-JSON body", status_code=response.status_code)
            return ChatResponse(success=False, message=f"Invalid response from chat webhook: {e}")

        logger.info("Chat message relayed", session_id=chat_input.session_id)
        return ChatResponse(
            success=True,
            message="Message sent successfully",
            data={"output": {"chatOutput": extract_reply(payload)}},
        )

    async def check_health(self) -> WebhookHealth:
        if not self.health_url:
            return WebhookHealth(is_online=False, error="Health URL not configured")

        try:
            response = await self.client.get(self.health_url, timeout=self.health_timeout)
        except httpx.TimeoutException:
            return WebhookHealth(is_online=False, error="Health check timed out")
        except httpx.RequestError as e:
            logger.warning("Chat webhook health check failed", error=str(e))
            return WebhookHealth(is_online=False, error=str(e))

        if response.is_error:
            return WebhookHealth(is_online=False, error=f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            return WebhookHealth(is_online=False, error="Invalid health response")

        if isinstance(payload, dict) and payload.get("status") == "ok":
            return WebhookHealth(is_online=True)
        return WebhookHealth(is_online=False, error="Unexpected health status")
