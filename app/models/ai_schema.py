"""
Pydantic schemas for structured model output

Defines the JSON contracts the language model is asked to return:
- Brief analysis (project overview, requirements, signals, risks, approach)
- Proposal generation (seven narrative sections + investment tiers + metadata)
- Quality scoring (rubric breakdown, strengths, prioritized improvements)

Plus the typed proposal content blob and its partial-update model.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Dict, Optional

from app.domain.constants import IMPROVEMENT_PRIORITIES, MAX_PRICING_TIERS


class _AIModel(BaseModel):
    """Tolerates extra keys the model adds on its own."""
    model_config = ConfigDict(extra="ignore")


# ===================== BRIEF ANALYSIS =====================

class ProjectOverview(_AIModel):
    type: str = ""
    industry: str = ""
    complexity: str = "medium"
    confidence_score: float = Field(0, ge=0, le=100)


class Requirements(_AIModel):
    explicit: List[str] = Field(default_factory=list)
    implicit: List[str] = Field(default_factory=list)
    technical: List[str] = Field(default_factory=list)
    deliverables: List[str] = Field(default_factory=list)


class ClientInsights(_AIModel):
    pain_points: List[str] = Field(default_factory=list)
    success_criteria: List[str] = Field(default_factory=list)
    decision_factors: List[str] = Field(default_factory=list)


class TimelineInfo(_AIModel):
    urgency: str = "medium"
    duration_estimate: str = ""
    key_dates: List[str] = Field(default_factory=list)


class BudgetInfo(_AIModel):
    signals: List[str] = Field(default_factory=list)
    range_estimate: str = ""
    pricing_sensitivity: str = "medium"


class ProjectSignals(_AIModel):
    timeline: TimelineInfo = Field(default_factory=TimelineInfo)
    budget: BudgetInfo = Field(default_factory=BudgetInfo)


class RiskAssessment(_AIModel):
    red_flags: List[str] = Field(default_factory=list)
    clarification_needed: List[str] = Field(default_factory=list)
    scope_creep_risks: List[str] = Field(default_factory=list)


class RecommendedApproach(_AIModel):
    proposal_tone: str = "professional"
    key_themes: List[str] = Field(default_factory=list)
    differentiators: List[str] = Field(default_factory=list)
    pricing_strategy: str = "value_based"


class BriefAnalysisResult(_AIModel):
    """Structured analysis of a client brief. All six blocks are required."""
    project_overview: ProjectOverview
    requirements: Requirements
    client_insights: ClientInsights
    project_signals: ProjectSignals
    risk_assessment: RiskAssessment
    recommended_approach: RecommendedApproach


# ===================== PROPOSAL GENERATION =====================

class PricingTier(_AIModel):
    name: str
    price: float = 0
    description: str = ""
    features: List[str] = Field(default_factory=list)
    timeline: str = ""
    highlighted: bool = False


class InvestmentSection(_AIModel):
    intro: str = ""
    tiers: List[PricingTier] = Field(default_factory=list, max_length=MAX_PRICING_TIERS)


class ProposalSectionsText(_AIModel):
    """The seven narrative sections (HTML strings)."""
    opening_hook: str = ""
    problem_statement: str = ""
    proposed_solution: str = ""
    methodology: str = ""
    timeline: str = ""
    why_choose_us: str = ""
    next_steps: str = ""


class GeneratedSections(ProposalSectionsText):
    investment: InvestmentSection = Field(default_factory=InvestmentSection)


class ProposalMetadata(_AIModel):
    word_count: int = 0
    estimated_read_time: str = ""
    tone: str = ""


class ProposalGenerationResult(_AIModel):
    title: str
    sections: GeneratedSections
    metadata: ProposalMetadata = Field(default_factory=ProposalMetadata)


class ProposalContent(BaseModel):
    """Shape of the stored content_json blob."""
    model_config = ConfigDict(extra="forbid")

    sections: ProposalSectionsText
    investment: InvestmentSection
    metadata: ProposalMetadata

    @classmethod
    def from_generation(cls, result: ProposalGenerationResult) -> "ProposalContent":
        narrative = result.sections.model_dump(exclude={"investment"})
        return cls(
            sections=ProposalSectionsText(**narrative),
            investment=result.sections.investment,
            metadata=result.metadata,
        )


# ===================== PARTIAL UPDATE =====================

class SectionsUpdate(BaseModel):
    """
    Subset of narrative sections to overwrite.

    A section is replaced only if it appears in model_fields_set;
    every other section keeps its stored value.
    """
    model_config = ConfigDict(extra="forbid")

    opening_hook: Optional[str] = Field(None, max_length=50000)
    problem_statement: Optional[str] = Field(None, max_length=50000)
    proposed_solution: Optional[str] = Field(None, max_length=50000)
    methodology: Optional[str] = Field(None, max_length=50000)
    timeline: Optional[str] = Field(None, max_length=50000)
    why_choose_us: Optional[str] = Field(None, max_length=50000)
    next_steps: Optional[str] = Field(None, max_length=50000)

    def present(self) -> Dict[str, str]:
        """Sections explicitly sent by the caller. An explicit null clears to ''."""
        return {key: getattr(self, key) or "" for key in self.model_fields_set}


class ProposalUpdate(BaseModel):
    """Partial update: absent fields keep their existing value."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=3, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    sections: Optional[SectionsUpdate] = None
    investment: Optional[InvestmentSection] = None

    def is_set(self, field_name: str) -> bool:
        return field_name in self.model_fields_set and getattr(self, field_name) is not None


# ===================== QUALITY SCORING =====================

class CategoryScore(_AIModel):
    score: int = 0
    max: int = 0
    feedback: str = ""


class Improvement(_AIModel):
    priority: str = "medium"
    section: str = ""
    issue: str = ""
    suggestion: str = ""

    @field_validator("priority")
    @classmethod
    def normalize_priority(cls, v: str) -> str:
        v = (v or "medium").strip().lower()
        return v if v in IMPROVEMENT_PRIORITIES else "medium"


class QualityScoreResult(_AIModel):
    overall_score: int = Field(..., ge=0, le=100)
    grade: str = "C"
    win_probability: str = "medium"
    scores: Dict[str, CategoryScore] = Field(default_factory=dict)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[Improvement] = Field(default_factory=list)
    quick_wins: List[str] = Field(default_factory=list)
    rewrite_suggestions: Optional[Dict[str, str]] = None

    @field_validator("improvements")
    @classmethod
    def order_by_priority(cls, v: List[Improvement]) -> List[Improvement]:
        # stable sort keeps the model's order within a priority
        return sorted(v, key=lambda imp: IMPROVEMENT_PRIORITIES.index(imp.priority))
