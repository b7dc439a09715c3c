"""
Pydantic schemas for API requests and responses

Defines request/response models for:
- User registration and clients
- Brief creation and analysis
- Proposal generation, update, status and scoring
- Templates and subscription usage
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Dict, Any, Optional

from app.domain.constants import (
    ProposalStatus,
    SubscriptionPlan,
    VALID_LENGTHS,
    VALID_TONES,
)


# ===================== USERS & CLIENTS =====================

class RegisterUserRequest(BaseModel):
    """Register a new user. No subscription is created (free tier implied)."""
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    company_name: Optional[str] = Field(None, max_length=200)
    hourly_rate: Optional[float] = Field(None, gt=0, description="Hourly rate in USD used for pricing tiers")


class RegisterUserResponse(BaseModel):
    success: bool
    user_id: str
    email: str
    api_key: str = Field(description="Shown once, never stored in plain text")


class CreateClientRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255)
    company_name: Optional[str] = Field(None, max_length=200)
    industry: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=5000)


class ClientResponse(BaseModel):
    success: bool
    client: Dict[str, Any]


class ClientListResponse(BaseModel):
    success: bool
    clients: List[Dict[str, Any]]
    count: int


# ===================== BRIEFS =====================

class CreateBriefRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    raw_content: str = Field(
        ...,
        min_length=50,
        max_length=50000,
        description="Brief content must be at least 50 characters for meaningful analysis",
    )
    client_name: Optional[str] = Field(None, max_length=200, description="Client name given to the analyzer as context")
    industry: Optional[str] = Field(None, max_length=100, description="Client industry hint for the analyzer")


class BriefResponse(BaseModel):
    success: bool
    brief: Dict[str, Any]


# ===================== PROPOSALS =====================

class GenerateProposalRequest(BaseModel):
    """Request to generate a proposal from an analyzed brief"""
    brief_id: str = Field(..., min_length=1, description="Analyzed brief to build from")
    client_id: str = Field(..., min_length=1, description="Proposal recipient")
    preferred_tone: Optional[str] = Field(None, description=f"One of: {', '.join(VALID_TONES)}")
    proposal_length: Optional[str] = Field(None, description=f"One of: {', '.join(VALID_LENGTHS)}")
    emphasis: Optional[str] = Field(None, max_length=500)
    template_id: Optional[str] = Field(None, description="Optional template to use as a structural guide")

    @field_validator("preferred_tone")
    @classmethod
    def validate_tone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if v.lower() not in VALID_TONES:
            raise ValueError(f"Preferred tone must be one of: {', '.join(VALID_TONES)}")
        return v.lower()

    @field_validator("proposal_length")
    @classmethod
    def validate_length(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if v.lower() not in VALID_LENGTHS:
            raise ValueError(f"Proposal length must be one of: {', '.join(VALID_LENGTHS)}")
        return v.lower()


class GenerateProposalResponse(BaseModel):
    success: bool
    proposal_id: str


class ProposalResponse(BaseModel):
    success: bool
    proposal: Dict[str, Any]


class ProposalListResponse(BaseModel):
    success: bool
    proposals: List[Dict[str, Any]]
    count: int


class UpdateProposalStatusRequest(BaseModel):
    status: ProposalStatus


class QualityScoreResponse(BaseModel):
    success: bool
    proposal_id: str
    quality: Dict[str, Any]


# ===================== TEMPLATES =====================

class TemplateResponse(BaseModel):
    success: bool
    template: Dict[str, Any]


class TemplateListResponse(BaseModel):
    success: bool
    templates: List[Dict[str, Any]]
    count: int


# ===================== SUBSCRIPTION =====================

class UsageResponse(BaseModel):
    """Current quota usage for the caller"""
    success: bool
    plan: str
    is_active: bool
    limit: int = Field(description="-1 = unlimited")
    used: int
    reset_date: Optional[str] = None


class SetSubscriptionRequest(BaseModel):
    plan: SubscriptionPlan
    is_active: bool = True
