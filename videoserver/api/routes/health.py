"""
Health check endpoints.

We provide two endpoints:
- /api/health: Basic liveness check (is the process running?) that also
  echoes which storage backend the service is pointed at
- /api/health/ready: Readiness check (can we serve traffic?)

The distinction matters in orchestration systems like Kubernetes
where liveness and readiness have different behaviors.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...core.videos.exceptions import StorageError
from ..dependencies import SettingsDep, get_storage_client

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """
    Health check response.

    Standardized format makes it easy for monitoring tools to parse.
    """
    status: str
    timestamp: datetime
    service: str
    version: str
    storage: str
    bucket: str
    region: str
    environment: str


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """
    Liveness check - is the process alive?

    Fast and free of external calls. Used by load balancers and
    orchestrators to decide whether to restart the service.
    """
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc),
        service=settings.api_title,
        version=settings.api_version,
        storage="mock" if settings.storage_mock_mode else "Tencent Cloud COS",
        bucket=settings.cos_bucket_name,
        region=settings.cos_region,
        environment=settings.environment,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if the service can handle traffic. Checks the storage bucket.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(request: Request, settings: SettingsDep):
    """
    Readiness check - can we serve traffic?

    Verifies that storage credentials are configured and that the bucket
    answers a HEAD request. Returns 503 if any check fails, which tells
    load balancers not to route traffic here.
    """
    checks: list[ReadinessCheck] = []

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        checks.append(ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing_fields)}"
        ))
    else:
        checks.append(ReadinessCheck(name="configuration", status="ok"))

    storage = get_storage_client(request)
    if storage is None:
        checks.append(ReadinessCheck(
            name="storage",
            status="error",
            error="Object storage is not configured"
        ))
    else:
        try:
            await storage.check_bucket()
            checks.append(ReadinessCheck(name="storage", status="ok"))
        except StorageError as e:
            logger.error("Storage readiness check failed", extra={"error": str(e)})
            checks.append(ReadinessCheck(name="storage", status="error", error=str(e)))

    all_ok = all(check.status == "ok" for check in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=settings.api_version,
        checks=checks,
    )

    if not all_ok:
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )

    return response
