"""API v1 endpoints package."""

from src.api.v1.endpoints import monitoring

__all__ = [
    "monitoring",
]
