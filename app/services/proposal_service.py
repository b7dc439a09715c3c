"""
Proposal Service

Business logic for proposals:
- Generation from an analyzed brief (with optional template)
- Owner-scoped lookup and listing
- Typed partial content updates
- Lifecycle status transitions
- AI quality scoring
"""
import json
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime

from pydantic import ValidationError

from app.config import settings
from app.domain.constants import (
    BriefStatus,
    ProposalStatus,
    PROPOSAL_TRANSITIONS,
    TIER_BLOB_FIELDS,
)
from app.domain.context import UserContext
from app.domain.errors import NotFoundError, PreconditionError
from app.models.ai_schema import (
    BriefAnalysisResult,
    InvestmentSection,
    ProposalContent,
    ProposalUpdate,
    QualityScoreResult,
)
from app.models.api_schema import GenerateProposalRequest
from app.services.proposal_generator import ProposalGenerator
from app.services.quality_scorer import QualityScorer
from app.services.template_service import TemplateService

logger = logging.getLogger(__name__)


def tier_blobs(investment: InvestmentSection) -> Dict[str, str]:
    """
    Serialize pricing tiers into the basic/standard/premium columns.

    Tier 0 -> basic, 1 -> standard, 2 -> premium. Missing tiers are ''.
    """
    blobs = {field: "" for field in TIER_BLOB_FIELDS}
    for field, tier in zip(TIER_BLOB_FIELDS, investment.tiers):
        blobs[field] = tier.model_dump_json()
    return blobs


def dump_tiers(proposal: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Decode the non-empty tier blobs of a stored proposal, in order."""
    return [json.loads(proposal[field]) for field in TIER_BLOB_FIELDS if proposal.get(field)]



def load_content(proposal: Dict[str, Any]) -> ProposalContent:
    """
    Parse a proposal's stored content_json.

    Raises:
        PreconditionError: If the blob is missing or malformed
    """
    blob = proposal.get("content_json")
    if not blob:
        raise PreconditionError(f"Proposal {proposal.get('proposal_id')} has no content")
    try:
        return ProposalContent.model_validate_json(blob)
    except ValidationError as e:
        logger.error(f"[ProposalService] Stored content for {proposal.get('proposal_id')} is malformed: {e}")
        raise PreconditionError("Stored proposal content is malformed and cannot be updated") from e


class ProposalService:
    """
    Service for proposal generation and lifecycle.

    Orchestrates:
    - Brief, user, client and proposal repositories
    - TemplateService for optional structural guides
    - ProposalGenerator and QualityScorer for the AI calls
    """

    def __init__(
        self,
        proposal_repo,
        brief_repo,
        user_repo,
        client_repo,
        template_service: TemplateService,
        generator: ProposalGenerator,
        scorer: QualityScorer,
        default_hourly_rate: Optional[float] = None
    ):
        self.proposal_repo = proposal_repo
        self.brief_repo = brief_repo
        self.user_repo = user_repo
        self.client_repo = client_repo
        self.template_service = template_service
        self.generator = generator
        self.scorer = scorer
        self.default_hourly_rate = default_hourly_rate or settings.DEFAULT_HOURLY_RATE

    # ===================== GENERATION =====================

    async def generate_proposal(self, ctx: UserContext, request: GenerateProposalRequest) -> Dict[str, Any]:
        """
        Generate and store a DRAFT proposal from an analyzed brief.

        Steps:
        1. Load the brief (must be ANALYZED with content)
        2. Load the user and the user's client
        3. Resolve the optional template (skipped with a warning if inaccessible)
        4. Generate content with AI
        5. Persist content, tier blobs and brief snapshots
        6. Count template usage

        Raises:
            NotFoundError: Brief, user or client missing
            PreconditionError: Brief not analyzed
        """
        brief = self.brief_repo.get_for_user(request.brief_id, ctx.user_id)
        if not brief:
            raise NotFoundError(f"Brief {request.brief_id} not found")

        if brief.get("status") != BriefStatus.ANALYZED.value or not brief.get("analyzed_content"):
            raise PreconditionError("Brief must be analyzed before generating a proposal")

        user = self.user_repo.get_by_user_id(ctx.user_id)
        if not user:
            raise NotFoundError(f"User {ctx.user_id} not found")

        client = self.client_repo.get_for_user(request.client_id, ctx.user_id)
        if not client:
            raise NotFoundError(f"Client {request.client_id} not found")

        template = None
        if request.template_id:
            template = self.template_service.find_template(ctx, request.template_id)
            if template:
                logger.info(f"[ProposalService] Using template '{template['name']}' for proposal generation")
            else:
                logger.warning(
                    f"[ProposalService] Template {request.template_id} not found or not accessible "
                    f"for user {ctx.user_id}; continuing without it"
                )

        try:
            analysis = BriefAnalysisResult.model_validate_json(brief["analyzed_content"])
        except ValidationError as e:
            raise PreconditionError(f"Stored analysis for brief {brief['brief_id']} is malformed") from e

        logger.info(f"[ProposalService] Generating proposal for brief {brief['brief_id']}")

        result = await self.generator.generate(
            analysis,
            user_name=f"{user.get('first_name', '')} {user.get('last_name', '')}".strip(),
            company_name=user.get("company_name"),
            hourly_rate=user.get("hourly_rate") or self.default_hourly_rate,
            tone=request.preferred_tone or analysis.recommended_approach.proposal_tone,
            length=request.proposal_length,
            template=template,
            emphasis=request.emphasis,
        )

        content = ProposalContent.from_generation(result)
        proposal_data = {
            "user_id": ctx.user_id,
            "brief_id": brief["brief_id"],
            "client_id": client["client_id"],
            "template_id": template["template_id"] if template else None,
            "title": result.title,
            "description": f"Proposal for {brief['title']}",
            "content_json": content.model_dump_json(indent=2),
            "brief_analysis": brief["analyzed_content"],
            "original_brief": brief["raw_content"],
        }
        proposal_data.update(tier_blobs(content.investment))

        proposal = self.proposal_repo.create(proposal_data)

        if template:
            self.template_service.increment_usage(template["template_id"])

        logger.info(
            f"[ProposalService] Generated proposal {proposal['proposal_id']} for brief {brief['brief_id']}"
        )
        return proposal

    # ===================== READ =====================

    def get_proposal(self, ctx: UserContext, proposal_id: str) -> Dict[str, Any]:
        proposal = self.proposal_repo.get_for_user(proposal_id, ctx.user_id)
        if not proposal:
            raise NotFoundError(f"Proposal {proposal_id} not found")
        return proposal

    def list_proposals(self, ctx: UserContext, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        return self.proposal_repo.list_for_user(ctx.user_id, skip=skip, limit=limit)

    # ===================== UPDATE =====================

    def update_proposal(self, ctx: UserContext, proposal_id: str, update: ProposalUpdate) -> Dict[str, Any]:
        """
        Apply a partial update. Only fields the caller sent are changed.

        Raises:
            NotFoundError: Proposal missing
            PreconditionError: Stored content cannot be parsed
        """
        proposal = self.get_proposal(ctx, proposal_id)
        fields: Dict[str, Any] = {}

        if update.is_set("title"):
            fields["title"] = update.title
        if "description" in update.model_fields_set:
            fields["description"] = update.description or ""

        if update.is_set("sections") or update.is_set("investment"):
            content = load_content(proposal)
            if update.is_set("sections"):
                content.sections = content.sections.model_copy(update=update.sections.present())
            if update.is_set("investment"):
                content.investment = update.investment
                fields.update(tier_blobs(update.investment))
            fields["content_json"] = content.model_dump_json(indent=2)

        if not fields:
            return proposal

        updated = self.proposal_repo.update_fields(proposal_id, ctx.user_id, fields)
        if not updated:
            raise NotFoundError(f"Proposal {proposal_id} not found")

        logger.info(f"[ProposalService] Updated proposal {proposal_id}: {sorted(fields)}")
        return updated

    def update_status(self, ctx: UserContext, proposal_id: str, new_status: ProposalStatus) -> Dict[str, Any]:
        """
        Move a proposal along its lifecycle and stamp the matching timestamp.

        Raises:
            NotFoundError: Proposal missing
            PreconditionError: Transition not allowed from the current status
        """
        proposal = self.get_proposal(ctx, proposal_id)
        current = ProposalStatus(proposal["status"])

        if new_status not in PROPOSAL_TRANSITIONS[current]:
            raise PreconditionError(
                f"Cannot change proposal status from '{current.value}' to '{new_status.value}'"
            )

        now = datetime.utcnow()
        set_fields: Dict[str, Any] = {"status": new_status.value}
        update: Dict[str, Any] = {"$set": set_fields}

        if new_status == ProposalStatus.SENT:
            set_fields["sent_at"] = now
        elif new_status == ProposalStatus.VIEWED:
            set_fields["last_viewed_at"] = now
            if not proposal.get("first_viewed_at"):
                set_fields["first_viewed_at"] = now
            update["$inc"] = {"view_count": 1}
        elif new_status == ProposalStatus.ACCEPTED:
            set_fields["accepted_at"] = now
        elif new_status == ProposalStatus.REJECTED:
            set_fields["rejected_at"] = now
        elif new_status == ProposalStatus.EXPIRED:
            set_fields["expires_at"] = proposal.get("expires_at") or now

        updated = self.proposal_repo.transition_status(proposal_id, ctx.user_id, current, update)
        if not updated:
            raise PreconditionError(f"Proposal {proposal_id} status changed concurrently, retry")

        logger.info(f"[ProposalService] Proposal {proposal_id}: {current.value} -> {new_status.value}")
        return updated

    # ===================== SCORING =====================

    async def score_proposal(self, ctx: UserContext, proposal_id: str) -> QualityScoreResult:
        """
        Score a proposal against its brief. Nothing is persisted.

        Raises:
            NotFoundError: Proposal missing
            PreconditionError: Brief content, analysis or proposal content missing
        """
        proposal = self.get_proposal(ctx, proposal_id)

        brief = self.brief_repo.get_for_user(proposal.get("brief_id"), ctx.user_id)
        if not brief or not brief.get("raw_content"):
            raise PreconditionError("Brief content not found")
        if not brief.get("analyzed_content"):
            raise PreconditionError("Brief must be analyzed before scoring proposal")
        if not proposal.get("content_json"):
            raise PreconditionError("Proposal content not found")

        logger.info(f"[ProposalService] Scoring proposal {proposal_id}")
        return await self.scorer.score(
            brief["raw_content"],
            brief["analyzed_content"],
            proposal["content_json"],
        )


# Singleton instance
_proposal_service_instance: Optional[ProposalService] = None


def get_proposal_service() -> ProposalService:
    """
    Get or create singleton ProposalService instance.

    Returns:
        ProposalService wired to the MongoDB repositories and the cached LLM service
    """
    global _proposal_service_instance
    if _proposal_service_instance is None:
        from app.infra.mongodb.repositories import (
            get_proposal_repo,
            get_brief_repo,
            get_user_repo,
            get_client_repo,
        )
        from app.services.template_service import get_template_service
        from app.utils.openai_service import get_llm_service

        llm_service = get_llm_service()
        _proposal_service_instance = ProposalService(
            proposal_repo=get_proposal_repo(),
            brief_repo=get_brief_repo(),
            user_repo=get_user_repo(),
            client_repo=get_client_repo(),
            template_service=get_template_service(),
            generator=ProposalGenerator(llm_service, model=settings.OPENAI_LLM_MODEL),
            scorer=QualityScorer(llm_service),
        )
    return _proposal_service_instance
