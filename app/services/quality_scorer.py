"""
Quality Scorer

Grades a proposal against its brief on a 100-point rubric (relevance,
persuasiveness, clarity, professionalism, actionability) and returns
prioritized improvements. Read-only.
"""
import logging
from typing import Optional

from pydantic import ValidationError

from app.config import settings
from app.domain.errors import AIResponseError
from app.models.ai_schema import QualityScoreResult
from app.utils.openai_service import parse_json_response
from app.utils.prompt_engine import QUALITY_SCORER_SYSTEM_PROMPT, build_scoring_message

logger = logging.getLogger(__name__)


class QualityScorer:

    def __init__(self, llm_service, model: Optional[str] = None):
        self.llm_service = llm_service
        self.model = model or settings.OPENAI_ANALYSIS_MODEL

    async def score(self, brief_text: str, analysis_json: str, proposal_json: str) -> QualityScoreResult:
        """
        Score a proposal.

        Args:
            brief_text: Original brief text
            analysis_json: Brief analysis JSON
            proposal_json: Proposal content JSON

        Raises:
            AIResponseError: If the reply is not a valid score
        """
        message = build_scoring_message(brief_text, analysis_json, proposal_json)

        try:
            response = await self.llm_service.complete(
                message,
                QUALITY_SCORER_SYSTEM_PROMPT,
                model=self.model,
                temperature=0.2,
            )
            result = QualityScoreResult.model_validate(parse_json_response(response.text))
            logger.info(f"[QualityScorer] Scored proposal {result.overall_score}/100 ({result.grade})")
            return result
        except ValidationError as e:
            logger.error(f"[QualityScorer] Score did not match schema: {e}")
            raise AIResponseError(f"Failed to parse quality score: {e.error_count()} validation errors") from e
        except Exception as e:
            logger.error(f"[QualityScorer] Error scoring proposal: {str(e)}")
            raise
