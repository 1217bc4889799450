"""
Reusable FastAPI dependencies.

Dependencies:
  - get_rate_service  — the session's RateService from ``app.state``
"""

from fastapi import HTTPException, Request, status

from fxcompass.services.rate_service import RateService


async def get_rate_service(request: Request) -> RateService:
    """
    Return the RateService created in the application lifespan.

    Raises 503 if the app was started without one (lifespan not run).
    """
    service = getattr(request.app.state, "rate_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate service is not initialised",
        )
    return service
