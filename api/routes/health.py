"""
Health Check Endpoints
======================

API health check endpoints for monitoring and container probes.
"""

import logging
import time
import psutil
from datetime import datetime, timezone
from typing import Dict, Optional
from enum import Enum

import redis
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.dependencies import get_task_store
from api.services.stores import TaskStore


# Set up module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class ServiceStatus(str, Enum):
    """Health status of a single service, and of the application overall."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ServiceCheckResult(BaseModel):
    """Result of an individual service health check."""
    status: ServiceStatus = Field(description="Service health status")
    message: Optional[str] = Field(None, description="Status message or error details")
    latency_ms: Optional[float] = Field(None, description="Check latency in milliseconds")


class SystemMetrics(BaseModel):
    """System resource metrics."""
    cpu_percent: float = Field(description="CPU usage percentage")
    memory_percent: float = Field(description="Memory usage percentage")
    memory_available_mb: float = Field(description="Available memory in MB")
    disk_usage_percent: float = Field(description="Disk usage percentage")


class HealthCheckResponse(BaseModel):
    """Comprehensive health check response."""
    status: ServiceStatus = Field(description="Overall health status")
    timestamp: str = Field(description="ISO 8601 timestamp of the health check")
    services: Dict[str, ServiceCheckResult] = Field(description="Individual service statuses")
    system_metrics: SystemMetrics = Field(description="System resource metrics")


class ProbeResponse(BaseModel):
    """Readiness / liveness probe response."""
    status: str = Field(description="Probe status")
    timestamp: str = Field(description="ISO 8601 timestamp")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_store(store: TaskStore) -> ServiceCheckResult:
    """
    Check the document store.

    Redis-backed stores are pinged; the in-memory store is always reachable
    but reported with a reminder that it doesn't persist.

    Args:
        store: The task store in use

    Returns:
        ServiceCheckResult with store health status
    """
    redis_client = getattr(store, "redis_client", None)
    if redis_client is None:
        return ServiceCheckResult(
            status=ServiceStatus.HEALTHY,
            message="In-memory store (data is not persisted)"
        )

    start_time = time.time()
    try:
        redis_client.ping()
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return ServiceCheckResult(
            status=ServiceStatus.UNHEALTHY,
            message=f"Connection failed: {str(e)}"
        )

    latency_ms = (time.time() - start_time) * 1000
    return ServiceCheckResult(
        status=ServiceStatus.HEALTHY,
        message="Connected to Redis",
        latency_ms=round(latency_ms, 2)
    )


def get_system_metrics() -> SystemMetrics:
    """
    Gather system resource metrics.

    Returns:
        SystemMetrics with CPU, memory, and disk usage
    """
    try:
        cpu_percent = psutil.cpu_percent(interval=0.1)

        memory = psutil.virtual_memory()
        memory_available_mb = memory.available / (1024 * 1024)

        disk = psutil.disk_usage('/')

        return SystemMetrics(
            cpu_percent=round(cpu_percent, 2),
            memory_percent=round(memory.percent, 2),
            memory_available_mb=round(memory_available_mb, 2),
            disk_usage_percent=round(disk.percent, 2)
        )
    except (psutil.Error, OSError) as e:
        logger.error(f"Failed to gather system metrics: {e}")
        return SystemMetrics(
            cpu_percent=0.0,
            memory_percent=0.0,
            memory_available_mb=0.0,
            disk_usage_percent=0.0
        )


def determine_overall_status(services: Dict[str, ServiceCheckResult]) -> ServiceStatus:
    """
    Overall status from individual checks.

    The store is critical: if it is unhealthy, so is the application.
    Any other unhealthy or degraded service degrades the application.
    """
    store = services.get("store")
    if store is not None and store.status == ServiceStatus.UNHEALTHY:
        return ServiceStatus.UNHEALTHY

    if any(s.status != ServiceStatus.HEALTHY for s in services.values()):
        return ServiceStatus.DEGRADED
    return ServiceStatus.HEALTHY


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Comprehensive health check"
)
def health_check(store: TaskStore = Depends(get_task_store)) -> HealthCheckResponse:
    """
    Check the API, the document store and system resources.

    Returns HTTP 200 even when a service is unhealthy; read the 'status'
    field to determine overall health.
    """
    services = {
        "api": ServiceCheckResult(
            status=ServiceStatus.HEALTHY,
            message="API is running"
        ),
        "store": check_store(store),
    }

    overall_status = determine_overall_status(services)
    if overall_status != ServiceStatus.HEALTHY:
        unhealthy_services = [
            name for name, check in services.items()
            if check.status != ServiceStatus.HEALTHY
        ]
        logger.warning(f"Unhealthy/degraded services: {unhealthy_services}")

    return HealthCheckResponse(
        status=overall_status,
        timestamp=_timestamp(),
        services=services,
        system_metrics=get_system_metrics()
    )


@router.get("/health/ready", response_model=ProbeResponse, summary="Readiness probe")
def readiness_probe(store: TaskStore = Depends(get_task_store)) -> ProbeResponse:
    """
    Ready when the document store answers.

    Raises:
        HTTPException: 503 if the store is unreachable
    """
    result = check_store(store)
    if result.status == ServiceStatus.UNHEALTHY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Store not ready: {result.message}"
        )
    return ProbeResponse(status="ready", timestamp=_timestamp())


@router.get("/health/live", response_model=ProbeResponse, summary="Liveness probe")
def liveness_probe() -> ProbeResponse:
    """Confirms the process can respond. Does not check dependencies."""
    logger.debug("Liveness probe: ALIVE")
    return ProbeResponse(status="alive", timestamp=_timestamp())
