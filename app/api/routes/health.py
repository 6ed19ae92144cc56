from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Returns:
        dict: ``{"status": "ok"}`` while the process is serving requests.
    """

    return {"status": "ok"}
