"""Health check endpoints."""

from dataclasses import asdict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shiftcheck.config import settings
from shiftcheck.services.prelaunch import critical_failures, run_prelaunch_checks

router = APIRouter()


@router.get("")
async def health_check():
    """Basic health check - just confirms the service is running."""
    return {"status": "ok"}


@router.get("/ready")
async def readiness_check():
    """Readiness check - confirms token signing is configured and working.

    Returns 503 if any critical pre-launch check fails.
    """
    results = run_prelaunch_checks(settings)
    failures = critical_failures(results)

    response = {
        "status": "error" if failures else "ok",
        "checks": [asdict(r) for r in results],
    }

    if failures:
        response["failed"] = [r.name for r in failures]
        return JSONResponse(status_code=503, content=response)
    return response
