"""
Centralized Constants for ProposalPilot

SINGLE SOURCE OF TRUTH for status enums, plan limits and section keys.
All modules should import from here.
"""

from typing import Dict, FrozenSet, List
from enum import Enum


# =============================================================================
# STATUS ENUMS
# =============================================================================

class BriefStatus(str, Enum):
    """Brief lifecycle. ANALYZED and FAILED are terminal."""
    DRAFT = "draft"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    FAILED = "failed"


class ProposalStatus(str, Enum):
    """Proposal lifecycle. ACCEPTED, REJECTED and EXPIRED are terminal."""
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


PROPOSAL_TRANSITIONS: Dict[ProposalStatus, FrozenSet[ProposalStatus]] = {
    ProposalStatus.DRAFT: frozenset({ProposalStatus.SENT}),
    ProposalStatus.SENT: frozenset({
        ProposalStatus.VIEWED,
        ProposalStatus.ACCEPTED,
        ProposalStatus.REJECTED,
        ProposalStatus.EXPIRED,
    }),
    ProposalStatus.VIEWED: frozenset({
        ProposalStatus.VIEWED,  # repeat views bump the counter
        ProposalStatus.ACCEPTED,
        ProposalStatus.REJECTED,
        ProposalStatus.EXPIRED,
    }),
    ProposalStatus.ACCEPTED: frozenset(),
    ProposalStatus.REJECTED: frozenset(),
    ProposalStatus.EXPIRED: frozenset(),
}


# =============================================================================
# SUBSCRIPTION PLANS
# =============================================================================

UNLIMITED = -1


class SubscriptionPlan(str, Enum):
    """Subscription plan tiers with monthly proposal quotas."""
    FREE = "free"
    STARTER = "starter"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"

    @property
    def proposals_per_month(self) -> int:
        """Monthly proposal quota for this tier. -1 = unlimited."""
        limits = {
            SubscriptionPlan.FREE: 3,
            SubscriptionPlan.STARTER: 10,
            SubscriptionPlan.PROFESSIONAL: 50,
            SubscriptionPlan.ENTERPRISE: UNLIMITED,
        }
        return limits[self]

    @property
    def monthly_price(self) -> float:
        prices = {
            SubscriptionPlan.FREE: 0.0,
            SubscriptionPlan.STARTER: 29.0,
            SubscriptionPlan.PROFESSIONAL: 99.0,
            SubscriptionPlan.ENTERPRISE: 299.0,
        }
        return prices[self]


# =============================================================================
# PROPOSAL CONTENT
# =============================================================================

# Investment tier index -> proposal blob field
TIER_BLOB_FIELDS: List[str] = ["basic_tier_json", "standard_tier_json", "premium_tier_json"]

MAX_PRICING_TIERS = 3

VALID_TONES: List[str] = ["professional", "friendly", "formal", "casual", "technical", "consultative"]
VALID_LENGTHS: List[str] = ["short", "medium", "long", "detailed"]

# Quality scorer improvement priorities, most urgent first
IMPROVEMENT_PRIORITIES: List[str] = ["critical", "high", "medium", "low"]


# =============================================================================
# LLM PRICING (USD per million tokens: input, output)
# =============================================================================

MODEL_PRICING: Dict[str, tuple] = {
    "gpt-4o-mini": (0.15, 0.60),
    "gpt-4o": (2.50, 10.00),
    "gpt-4.1-mini": (0.40, 1.60),
    "gpt-4.1": (2.00, 8.00),
}
DEFAULT_MODEL_PRICING = MODEL_PRICING["gpt-4o"]

# Output tokens assumed when estimating brief analysis cost
ANALYSIS_OUTPUT_TOKEN_ESTIMATE = 1000
