"""
Brief Service

Business logic for client briefs:
- Creating a brief in DRAFT
- Owner-scoped lookup
- Running the AI analysis and recording its result, token estimate and cost
"""
import json
import logging
from typing import Dict, Any, Optional

from app.config import settings
from app.domain.constants import BriefStatus, ANALYSIS_OUTPUT_TOKEN_ESTIMATE
from app.domain.context import UserContext
from app.domain.errors import NotFoundError, PreconditionError
from app.models.ai_schema import BriefAnalysisResult
from app.services.brief_analyzer import BriefAnalyzer
from app.utils.openai_service import estimate_tokens, calculate_cost

logger = logging.getLogger(__name__)


def analysis_fields(analysis: BriefAnalysisResult) -> Dict[str, Any]:
    """Map an analysis onto the brief's denormalized columns."""
    requirements = analysis.requirements
    all_requirements = requirements.explicit + requirements.implicit
    success_criteria = analysis.client_insights.success_criteria

    return {
        "analyzed_content": json.dumps(analysis.model_dump(), indent=2),
        "project_type": analysis.project_overview.type,
        "industry": analysis.project_overview.industry,
        "estimated_budget": analysis.project_signals.budget.range_estimate or None,
        "timeline": analysis.project_signals.timeline.duration_estimate,
        "key_requirements": json.dumps(all_requirements) if all_requirements else None,
        "technical_requirements": json.dumps(requirements.technical) if requirements.technical else None,
        "target_audience": json.dumps(success_criteria) if success_criteria else None,
    }


class BriefService:
    """Service for brief creation and analysis."""

    def __init__(self, brief_repo, analyzer: BriefAnalyzer, analysis_model: Optional[str] = None):
        self.brief_repo = brief_repo
        self.analyzer = analyzer
        self.analysis_model = analysis_model or settings.OPENAI_ANALYSIS_MODEL

    def create_brief(
        self,
        ctx: UserContext,
        title: str,
        raw_content: str,
        client_name: Optional[str] = None,
        industry: Optional[str] = None
    ) -> Dict[str, Any]:
        brief = self.brief_repo.create(ctx.user_id, title, raw_content, client_name=client_name, industry=industry)
        logger.info(f"[BriefService] Brief {brief['brief_id']} created by {ctx.user_id}")
        return brief

    def get_brief(self, ctx: UserContext, brief_id: str) -> Dict[str, Any]:
        brief = self.brief_repo.get_for_user(brief_id, ctx.user_id)
        if not brief:
            raise NotFoundError(f"Brief {brief_id} not found")
        return brief

    async def analyze_brief(self, ctx: UserContext, brief_id: str) -> Dict[str, Any]:
        """
        Analyze a DRAFT brief and store the result.

        Status moves DRAFT -> ANALYZING -> ANALYZED, or FAILED on any error.

        Raises:
            NotFoundError: Brief does not exist for this user
            PreconditionError: Brief is not in DRAFT
        """
        brief = self.get_brief(ctx, brief_id)
        if brief["status"] != BriefStatus.DRAFT.value:
            raise PreconditionError(
                f"Brief {brief_id} cannot be analyzed in status '{brief['status']}'"
            )

        # Claim atomically so two concurrent requests cannot both analyze
        brief = self.brief_repo.claim_for_analysis(brief_id, ctx.user_id)
        if not brief:
            raise PreconditionError(f"Brief {brief_id} is already being analyzed")

        logger.info(f"[BriefService] Starting analysis for brief {brief_id}")

        try:
            analysis = await self.analyzer.analyze(
                brief["raw_content"],
                client_name=brief.get("client_name"),
                industry=brief.get("industry"),
            )

            fields = analysis_fields(analysis)
            # Heuristic estimate: actual usage is not attributed per brief
            input_estimate = estimate_tokens(brief["raw_content"])
            fields["tokens_used"] = input_estimate + ANALYSIS_OUTPUT_TOKEN_ESTIMATE
            fields["analysis_cost"] = calculate_cost(
                input_estimate,
                ANALYSIS_OUTPUT_TOKEN_ESTIMATE,
                self.analysis_model
            )

            updated = self.brief_repo.save_analysis(brief_id, fields)
            logger.info(
                f"[BriefService] Analyzed brief {brief_id} with {fields['tokens_used']} tokens"
            )
            return updated

        except Exception as e:
            logger.error(f"[BriefService] Error analyzing brief {brief_id}: {str(e)}", exc_info=True)
            self.brief_repo.mark_failed(brief_id)
            raise


# Singleton instance
_brief_service_instance: Optional[BriefService] = None


def get_brief_service() -> BriefService:
    """Get or create singleton BriefService instance."""
    global _brief_service_instance
    if _brief_service_instance is None:
        from app.infra.mongodb.repositories import get_brief_repo
        from app.utils.openai_service import get_llm_service
        _brief_service_instance = BriefService(
            brief_repo=get_brief_repo(),
            analyzer=BriefAnalyzer(get_llm_service()),
        )
    return _brief_service_instance
