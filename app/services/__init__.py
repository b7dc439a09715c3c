"""
Application Services - Business Logic Layer

Services contain business logic extracted from route handlers,
coordinating repositories and the LLM service.
"""

from app.services.brief_analyzer import BriefAnalyzer
from app.services.brief_service import BriefService, get_brief_service
from app.services.proposal_generator import ProposalGenerator
from app.services.quality_scorer import QualityScorer
from app.services.template_service import TemplateService, get_template_service
from app.services.proposal_service import ProposalService, get_proposal_service

__all__ = [
    "BriefAnalyzer",
    "BriefService",
    "get_brief_service",
    "ProposalGenerator",
    "QualityScorer",
    "TemplateService",
    "get_template_service",
    "ProposalService",
    "get_proposal_service",
]
