"""
Proposal Generator

Produces proposal content (seven narrative sections, up to three
investment tiers, metadata) from a brief analysis plus the requester's
profile and customization. Persists nothing.
"""
import logging
from typing import Optional, Dict, Any

from pydantic import ValidationError

from app.domain.errors import AIResponseError
from app.models.ai_schema import BriefAnalysisResult, ProposalGenerationResult
from app.utils.openai_service import parse_json_response
from app.utils.prompt_engine import PROPOSAL_GENERATOR_SYSTEM_PROMPT, build_generation_message

logger = logging.getLogger(__name__)


class ProposalGenerator:
    """Writes proposals with the generation model (OPENAI_LLM_MODEL)."""

    def __init__(self, llm_service, model: Optional[str] = None):
        self.llm_service = llm_service
        self.model = model

    async def generate(
        self,
        analysis: BriefAnalysisResult,
        user_name: str,
        company_name: Optional[str] = None,
        hourly_rate: Optional[float] = None,
        tone: Optional[str] = None,
        length: Optional[str] = None,
        template: Optional[Dict[str, Any]] = None,
        emphasis: Optional[str] = None
    ) -> ProposalGenerationResult:
        """
        Generate proposal content.

        Returns:
            ProposalGenerationResult

        Raises:
            AIResponseError: If the reply does not parse or has more than three tiers
        """
        logger.info(f"[ProposalGenerator] Generating proposal for user {user_name}")
        message = build_generation_message(
            analysis,
            user_name=user_name,
            company_name=company_name,
            hourly_rate=hourly_rate,
            tone=tone,
            length=length,
            template=template,
            emphasis=emphasis,
        )

        try:
            # Each generation should be fresh content, never a cached reply
            response = await self.llm_service.complete(
                message,
                PROPOSAL_GENERATOR_SYSTEM_PROMPT,
                model=self.model,
                use_cache=False,
            )
            logger.info(f"[ProposalGenerator] Received proposal response with {response.total_tokens} tokens")
            return ProposalGenerationResult.model_validate(parse_json_response(response.text))
        except ValidationError as e:
            logger.error(f"[ProposalGenerator] Proposal did not match schema: {e}")
            raise AIResponseError(f"Failed to parse AI response: {e.error_count()} validation errors") from e
        except Exception as e:
            logger.error(f"[ProposalGenerator] Error generating proposal: {str(e)}")
            raise
