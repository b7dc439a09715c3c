"""
Subscription Routes - read-only quota usage for the caller
"""
import logging
from fastapi import APIRouter, HTTPException, Depends

from app.domain.context import UserContext
from app.middleware.auth import verify_user
from app.middleware.quota import QuotaGuard, get_quota_guard
from app.models.api_schema import UsageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    ctx: UserContext = Depends(verify_user),
    guard: QuotaGuard = Depends(get_quota_guard)
):
    """Plan, limit (-1 = unlimited), proposals used and next reset date."""
    try:
        return UsageResponse(success=True, **guard.usage(ctx))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[SubscriptionAPI] Error reading usage: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to read usage: {str(e)}")
