from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems. Deliberately independent of
    Redis and the document service: both have fallbacks or fail per request.

    Returns:
        dict: ``{"service": "gateway", "status": "ok"}``.
    """

    return {"service": "gateway", "status": "ok"}
