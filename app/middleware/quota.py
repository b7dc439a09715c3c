"""
Quota Guard

Subscription quota enforcement for proposal generation.

Decision order:
1. No subscription -> free tier: count proposals in the trailing window
2. Inactive subscription -> reject
3. Reset date passed -> zero usage and advance the reset date
4. Reserve one slot atomically (used < quota, or unlimited)

A reserved slot is released if the handler fails, so usage grows only
on success. Rejections raise QuotaExceededError, rendered as a 402.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Iterator

from dateutil.relativedelta import relativedelta
from fastapi import Depends, HTTPException, status

from app.config import settings
from app.domain.constants import UNLIMITED
from app.domain.context import UserContext
from app.domain.errors import QuotaExceededError
from app.middleware.auth import verify_user

logger = logging.getLogger(__name__)


def next_reset_date(reset_date: datetime) -> datetime:
    """The reset date one calendar month after reset_date."""
    return reset_date + relativedelta(months=1)


@dataclass
class QuotaTicket:
    """
    Outcome of an allowed quota check.

    reserved is True when a usage slot was taken and must be released
    if the proposal is not created.
    """
    user_id: str
    reserved: bool = False
    subscription_repo: Any = None
    _settled: bool = field(default=False, repr=False)

    def commit(self) -> None:
        """Keep the reserved slot: the proposal was created."""
        self._settled = True

    def release(self) -> None:
        """Give the slot back. No-op after commit or a second release."""
        if self._settled:
            return
        self._settled = True
        if self.reserved:
            self.subscription_repo.release_slot(self.user_id)
            logger.info(f"[QuotaGuard] Released reserved slot for user {self.user_id}")


class QuotaGuard:
    """Checks and reserves proposal quota before generation."""

    def __init__(
        self,
        subscription_repo,
        proposal_repo,
        user_repo,
        free_tier_limit: Optional[int] = None,
        free_tier_window_days: Optional[int] = None,
        fail_open: Optional[bool] = None
    ):
        self.subscription_repo = subscription_repo
        self.proposal_repo = proposal_repo
        self.user_repo = user_repo
        self.free_tier_limit = free_tier_limit if free_tier_limit is not None else settings.FREE_TIER_PROPOSAL_LIMIT
        self.free_tier_window_days = (
            free_tier_window_days if free_tier_window_days is not None else settings.FREE_TIER_WINDOW_DAYS
        )
        self.fail_open = settings.QUOTA_FAIL_OPEN if fail_open is None else fail_open

    def check(self, ctx: UserContext) -> QuotaTicket:
        """
        Decide whether ctx may generate a proposal.

        Returns:
            QuotaTicket for an allowed request

        Raises:
            QuotaExceededError: Quota used up or subscription inactive
            HTTPException: 404 unknown user, 503 when failing closed
        """
        try:
            return self._check(ctx)
        except (QuotaExceededError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"[QuotaGuard] Error checking quota for user {ctx.user_id}: {e}", exc_info=True)
            if self.fail_open:
                return QuotaTicket(user_id=ctx.user_id)
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Quota check unavailable, try again later")

    def _check(self, ctx: UserContext) -> QuotaTicket:
        user = self.user_repo.get_by_user_id(ctx.user_id)
        if not user:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")

        subscription = self.subscription_repo.get_by_user(ctx.user_id)
        if subscription is None:
            return self._check_free_tier(ctx)

        if not subscription.get("is_active"):
            raise QuotaExceededError(self._inactive_payload())

        now = datetime.utcnow()
        reset_date = subscription.get("usage_reset_date")
        if reset_date and reset_date <= now:
            new_reset_date = next_reset_date(reset_date)
            if self.subscription_repo.reset_usage(ctx.user_id, reset_date, new_reset_date):
                logger.info(
                    f"[QuotaGuard] Reset monthly usage for user {ctx.user_id}, "
                    f"next reset {new_reset_date.isoformat()}"
                )

        reserved = self.subscription_repo.reserve_slot(ctx.user_id)
        if reserved is not None:
            limit = reserved.get("proposals_per_month")
            logger.info(
                f"[QuotaGuard] Reserved slot for user {ctx.user_id}: "
                f"{reserved.get('proposals_used_this_month')}/{'unlimited' if limit == UNLIMITED else limit}"
            )
            return QuotaTicket(user_id=ctx.user_id, reserved=True, subscription_repo=self.subscription_repo)

        # Reservation refused: re-read to report why
        current = self.subscription_repo.get_by_user(ctx.user_id) or subscription
        if not current.get("is_active"):
            raise QuotaExceededError(self._inactive_payload())

        limit = current.get("proposals_per_month")
        used = current.get("proposals_used_this_month", 0)
        reset_at = current.get("usage_reset_date")
        logger.info(f"[QuotaGuard] User {ctx.user_id} at quota {used}/{limit}")
        raise QuotaExceededError({
            "message": (
                f"You've reached your proposal limit of {limit} for this month. "
                "Please upgrade or wait until next month."
            ),
            "limit": limit,
            "used": used,
            "reset_date": reset_at.isoformat() if reset_at else None,
            "upgrade_required": False,
        })

    def _check_free_tier(self, ctx: UserContext) -> QuotaTicket:
        since = datetime.utcnow() - timedelta(days=self.free_tier_window_days)
        used = self.proposal_repo.count_created_since(ctx.user_id, since)
        if used >= self.free_tier_limit:
            logger.info(f"[QuotaGuard] Free tier limit reached for user {ctx.user_id}: {used}/{self.free_tier_limit}")
            raise QuotaExceededError({
                "message": "You've reached your proposal limit for the free plan. Please upgrade to continue.",
                "limit": self.free_tier_limit,
                "used": used,
                "upgrade_required": True,
            })
        return QuotaTicket(user_id=ctx.user_id)

    @staticmethod
    def _inactive_payload() -> Dict[str, Any]:
        return {
            "message": "Your subscription is inactive. Please reactivate to continue.",
            "upgrade_required": True,
        }

    def usage(self, ctx: UserContext) -> Dict[str, Any]:
        """Read-only usage snapshot. Does not reset or reserve."""
        subscription = self.subscription_repo.get_by_user(ctx.user_id)
        if subscription is None:
            since = datetime.utcnow() - timedelta(days=self.free_tier_window_days)
            return {
                "plan": "free",
                "is_active": True,
                "limit": self.free_tier_limit,
                "used": self.proposal_repo.count_created_since(ctx.user_id, since),
                "reset_date": None,
            }

        reset_at = subscription.get("usage_reset_date")
        used = subscription.get("proposals_used_this_month", 0)
        if reset_at and reset_at <= datetime.utcnow():
            used = 0
        return {
            "plan": subscription.get("plan"),
            "is_active": bool(subscription.get("is_active")),
            "limit": subscription.get("proposals_per_month"),
            "used": used,
            "reset_date": reset_at.isoformat() if reset_at else None,
        }


# Singleton instance
_quota_guard: Optional[QuotaGuard] = None


def get_quota_guard() -> QuotaGuard:
    """Get singleton QuotaGuard wired to the MongoDB repositories."""
    global _quota_guard
    if _quota_guard is None:
        from app.infra.mongodb.repositories import (
            get_subscription_repo,
            get_proposal_repo,
            get_user_repo,
        )
        _quota_guard = QuotaGuard(get_subscription_repo(), get_proposal_repo(), get_user_repo())
    return _quota_guard


def enforce_quota(
    ctx: UserContext = Depends(verify_user),
    guard: QuotaGuard = Depends(get_quota_guard)
) -> Iterator[QuotaTicket]:
    """
    Route dependency: runs the quota check before the handler.

    The handler commits the ticket once the proposal is stored. Any other
    outcome, including a request body that fails validation after this
    dependency ran, gives the reserved slot back.
    """
    ticket = guard.check(ctx)
    try:
        yield ticket
    finally:
        try:
            ticket.release()
        except Exception as e:
            # The request's own response takes precedence over a failed release
            logger.error(f"[QuotaGuard] Failed to release slot for user {ctx.user_id}: {e}", exc_info=True)
