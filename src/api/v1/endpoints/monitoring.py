from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.responses import success_response
from src.api.v1.dependencies import (
    get_breaker_registry,
    get_container,
    get_event_buffer,
    get_registered_breaker,
)
from src.core.logging import get_logger
from src.infrastructure.container import Container
from src.infrastructure.resilience import CircuitBreaker, CircuitBreakerRegistry
from src.infrastructure.telemetry import InMemoryEventSink

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    summary="Health check",
    description="Report overall health from the state of every circuit breaker.",
)
async def health_check(
    container: Container = Depends(get_container),
    registry: CircuitBreakerRegistry = Depends(get_breaker_registry),
):
    """Health check endpoint."""
    statuses = registry.get_all_statuses()
    open_circuits = sorted(name for name, s in statuses.items() if not s.is_healthy)

    return {
        "status": "degraded" if open_circuits else "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": container.config.app_name,
        "environment": container.config.environment,
        "unhealthy_circuits": open_circuits,
        "circuits": {name: s.to_dict() for name, s in statuses.items()},
    }


@router.get(
    "/circuits",
    summary="List circuit breakers",
    description="Get the current status of every registered circuit breaker.",
)
async def list_circuits(
    registry: CircuitBreakerRegistry = Depends(get_breaker_registry),
):
    statuses = registry.get_all_statuses()
    return {
        "total": len(statuses),
        "circuits": {name: s.to_dict() for name, s in statuses.items()},
    }


@router.get(
    "/circuits/{name}",
    summary="Get circuit breaker",
)
async def get_circuit(breaker: CircuitBreaker = Depends(get_registered_breaker)):
    return {
        **breaker.get_status().to_dict(),
        "config": breaker.config.to_dict(),
    }


@router.post(
    "/circuits/reset",
    summary="Reset all circuit breakers",
    description="Administrative override: force every breaker back to closed.",
)
async def reset_all_circuits(
    registry: CircuitBreakerRegistry = Depends(get_breaker_registry),
):
    registry.reset_all()
    logger.info("admin_reset_all_circuits", count=len(registry))
    return success_response(
        data={"reset": registry.names},
        message="All circuit breakers reset",
    )


@router.post(
    "/circuits/{name}/reset",
    summary="Reset circuit breaker",
    description="Administrative override: force one breaker back to closed.",
)
async def reset_circuit(breaker: CircuitBreaker = Depends(get_registered_breaker)):
    breaker.reset()
    logger.info("admin_reset_circuit", name=breaker.name)
    return success_response(
        data=breaker.get_status().to_dict(),
        message=f"Circuit breaker '{breaker.name}' reset",
    )


@router.get(
    "/events",
    summary="Recent breaker events",
    description="Recent circuit breaker lifecycle events, oldest first.",
)
async def recent_events(
    limit: int = Query(50, ge=1, le=1000),
    breaker: Optional[str] = Query(None),
    buffer: Optional[InMemoryEventSink] = Depends(get_event_buffer),
):
    if buffer is None:
        return {"enabled": False, "events": []}

    events = buffer.recent(limit=limit, breaker_name=breaker)
    return {
        "enabled": True,
        "count": len(events),
        "events": [event.to_dict() for event in events],
    }


@router.get(
    "/config",
    summary="Get configuration",
    description="Get the active circuit breaker configuration.",
)
async def get_configuration(container: Container = Depends(get_container)):
    resilience = container.config.resilience
    return {
        "environment": container.config.environment,
        "debug": container.config.debug,
        "circuit_breaker": {
            "default": resilience.default.to_dict(),
            "overrides": {
                name: cfg.to_dict() for name, cfg in resilience.overrides.items()
            },
        },
        "telemetry": {
            "sink_type": container.config.telemetry.sink_type,
            "buffer_size": container.config.telemetry.buffer_size,
        },
    }
