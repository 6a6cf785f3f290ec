"""
Health Check Endpoints

Liveness and readiness probes plus a detailed status report.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from crm.chat import WebhookChatClient
from crm.config import get_settings
from crm.database.connection import check_database_health
from crm.database.models import utcnow
from crm.serving.api.dependencies import get_chat_client

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(
    chat_client: WebhookChatClient = Depends(get_chat_client),
) -> HealthResponse:
    """
    Detailed health report.

    The database is critical: if it is down the service is unhealthy. The
    chat webhook is optional and only degrades the status.
    """
    settings = get_settings()
    checks: Dict[str, Any] = {"database": await check_database_health()}
    status = "healthy" if checks["database"]["status"] == "healthy" else "unhealthy"

    if chat_client.health_url:
        webhook = await chat_client.check_health()
        checks["chat_webhook"] = webhook.model_dump()
        if not webhook.is_online and status == "healthy":
            status = "degraded"

    return HealthResponse(
        status=status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=utcnow(),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Returns 200 while the process is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """Returns 503 until the database answers."""
    db_health = await check_database_health()
    if db_health.get("status") != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}
