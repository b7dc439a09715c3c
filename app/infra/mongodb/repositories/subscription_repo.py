"""
Subscription Repository

Plan, monthly quota and usage counter per user.

Usage changes go through single-document atomic updates so concurrent
generate requests cannot push proposals_used_this_month past the quota.
"""
import logging
import uuid
from typing import Optional, Dict, Any
from datetime import datetime
from dateutil.relativedelta import relativedelta

from app.domain.constants import SubscriptionPlan, UNLIMITED
from app.infra.mongodb.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SubscriptionRepository(BaseRepository[Dict[str, Any]]):
    """Repository for user subscriptions and quota usage."""

    collection_name = "subscriptions"

    def get_by_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a user's subscription, or None for the implied free tier."""
        return self.find_one({"user_id": user_id})

    def upsert_plan(
        self,
        user_id: str,
        plan: SubscriptionPlan,
        is_active: bool = True
    ) -> Dict[str, Any]:
        """
        Create or change a user's plan. Usage is kept on plan change.
        """
        now = datetime.utcnow()
        self.collection.update_one(
            {"user_id": user_id},
            {
                "$set": {
                    "plan": plan.value,
                    "monthly_price": plan.monthly_price,
                    "proposals_per_month": plan.proposals_per_month,
                    "is_active": is_active,
                    "updated_at": now,
                },
                "$setOnInsert": {
                    "subscription_id": f"sub_{uuid.uuid4().hex[:12]}",
                    "user_id": user_id,
                    "start_date": now,
                    "proposals_used_this_month": 0,
                    "usage_reset_date": now + relativedelta(months=1),
                    "created_at": now,
                },
            },
            upsert=True
        )
        logger.info(f"Set subscription for {user_id}: plan={plan.value}, active={is_active}")
        return self.get_by_user(user_id)

    def reset_usage(
        self,
        user_id: str,
        expected_reset_date: datetime,
        new_reset_date: datetime
    ) -> Optional[Dict[str, Any]]:
        """
        Zero the usage counter if the reset date is still expected_reset_date.

        Returns:
            Updated subscription, or None if another request reset it first
        """
        return self.find_one_and_update(
            {"user_id": user_id, "usage_reset_date": expected_reset_date},
            {"$set": {"proposals_used_this_month": 0, "usage_reset_date": new_reset_date}}
        )

    def reserve_slot(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Atomically take one proposal slot if the quota allows it.

        Returns:
            Subscription after the increment, or None if the quota is used up
            or the subscription is inactive
        """
        return self.find_one_and_update(
            {
                "user_id": user_id,
                "is_active": True,
                "$or": [
                    {"proposals_per_month": UNLIMITED},
                    {"$expr": {"$lt": ["$proposals_used_this_month", "$proposals_per_month"]}},
                ],
            },
            {"$inc": {"proposals_used_this_month": 1}}
        )

    def release_slot(self, user_id: str) -> bool:
        """Give back a reserved slot. Never drops the counter below zero."""
        return self.update_one(
            {"user_id": user_id, "proposals_used_this_month": {"$gt": 0}},
            {"$inc": {"proposals_used_this_month": -1}}
        )


# Singleton instance
_subscription_repo: Optional[SubscriptionRepository] = None


def get_subscription_repo() -> SubscriptionRepository:
    """Get singleton SubscriptionRepository instance."""
    global _subscription_repo
    if _subscription_repo is None:
        _subscription_repo = SubscriptionRepository()
    return _subscription_repo
