"""
Brief Analyzer

Turns raw client brief text into a structured BriefAnalysisResult by
asking the model for JSON under the analyzer system prompt.
"""
import logging
from typing import Optional

from pydantic import ValidationError

from app.config import settings
from app.domain.errors import AIResponseError
from app.models.ai_schema import BriefAnalysisResult
from app.utils.openai_service import parse_json_response
from app.utils.prompt_engine import BRIEF_ANALYZER_SYSTEM_PROMPT, build_analysis_message

logger = logging.getLogger(__name__)


class BriefAnalyzer:
    """Extracts project overview, requirements, insights, signals, risks and approach from a brief."""

    def __init__(self, llm_service, model: Optional[str] = None):
        """
        Args:
            llm_service: Object with an async complete(message, system_prompt, **kwargs)
            model: Model used for analysis (defaults to OPENAI_ANALYSIS_MODEL)
        """
        self.llm_service = llm_service
        self.model = model or settings.OPENAI_ANALYSIS_MODEL

    async def analyze(
        self,
        brief_text: str,
        client_name: Optional[str] = None,
        industry: Optional[str] = None
    ) -> BriefAnalysisResult:
        """
        Analyze a brief.

        Raises:
            AIResponseError: If the reply is not a valid analysis
        """
        logger.info(f"[BriefAnalyzer] Analyzing brief with {len(brief_text)} characters")
        message = build_analysis_message(brief_text, client_name=client_name, industry=industry)

        try:
            response = await self.llm_service.complete(
                message,
                BRIEF_ANALYZER_SYSTEM_PROMPT,
                model=self.model,
            )
            logger.info(f"[BriefAnalyzer] Received analysis response with {response.total_tokens} tokens")
            return BriefAnalysisResult.model_validate(parse_json_response(response.text))
        except ValidationError as e:
            logger.error(f"[BriefAnalyzer] Analysis did not match schema: {e}")
            raise AIResponseError(f"Failed to parse AI response: {e.error_count()} validation errors") from e
        except Exception as e:
            logger.error(f"[BriefAnalyzer] Error analyzing brief: {str(e)}")
            raise
