"""
Admin Routes - Subscription Management

Super admin (master key) can set a user's plan and active state. This is
the manual stand-in for billing provider webhooks.
"""
import logging
from fastapi import APIRouter, HTTPException, Depends

from app.infra.mongodb.repositories import get_user_repo, get_subscription_repo
from app.middleware.auth import verify_super_admin
from app.models.api_schema import SetSubscriptionRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.put("/subscriptions/{user_id}", dependencies=[Depends(verify_super_admin)])
async def set_subscription(
    user_id: str,
    req: SetSubscriptionRequest,
    user_repo=Depends(get_user_repo),
    subscription_repo=Depends(get_subscription_repo)
):
    """Create or change a user's subscription plan. Usage counters are kept."""
    try:
        if not user_repo.get_by_user_id(user_id):
            raise HTTPException(status_code=404, detail=f"User {user_id} not found")

        subscription = subscription_repo.upsert_plan(user_id, req.plan, is_active=req.is_active)
        logger.info(f"[AdminAPI] Subscription for {user_id} set to {req.plan.value} (active={req.is_active})")
        return {
            "success": True,
            "message": f"Plan updated to {req.plan.value}",
            "subscription": subscription,
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[AdminAPI] Error setting subscription for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to set subscription: {str(e)}")
