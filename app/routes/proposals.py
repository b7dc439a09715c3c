"""
Proposal Routes

Generation from an analyzed brief (quota-guarded), plus lifecycle:
- POST  /api/proposals/generate
- GET   /api/proposals
- GET   /api/proposals/{proposal_id}
- PATCH /api/proposals/{proposal_id}
- POST  /api/proposals/{proposal_id}/status
- POST  /api/proposals/{proposal_id}/score

Only /generate passes through the quota guard.
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query

from app.domain.context import UserContext
from app.domain.errors import NotFoundError, PreconditionError, AIResponseError
from app.middleware.auth import verify_user
from app.middleware.quota import QuotaTicket, enforce_quota
from app.models.ai_schema import ProposalUpdate
from app.models.api_schema import (
    GenerateProposalRequest,
    GenerateProposalResponse,
    ProposalResponse,
    ProposalListResponse,
    UpdateProposalStatusRequest,
    QualityScoreResponse,
)
from app.services.proposal_service import ProposalService, get_proposal_service, dump_tiers

logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/api/proposals", tags=["proposals"])


def _with_tiers(proposal: dict) -> dict:
    proposal = dict(proposal)
    proposal["tiers"] = dump_tiers(proposal)
    return proposal


# ===================== GENERATION =====================

@router.post(
    "/generate",
    response_model=GenerateProposalResponse,
    status_code=200,
    summary="Generate a proposal from an analyzed brief",
    responses={
        200: {"description": "Proposal generated and saved as draft"},
        400: {"description": "Brief not analyzed"},
        402: {"description": "Proposal quota exceeded"},
        404: {"description": "Brief, user or client not found"},
        500: {"description": "Generation error"}
    }
)
async def generate_proposal(
    request: GenerateProposalRequest,
    ctx: UserContext = Depends(verify_user),
    ticket: QuotaTicket = Depends(enforce_quota),
    service: ProposalService = Depends(get_proposal_service)
):
    """
    Generate an AI proposal for an analyzed brief and one of your clients.

    **Request Example:**
    ```json
    {
        "brief_id": "brf_1a2b3c4d5e6f",
        "client_id": "cli_9f8e7d6c5b4a",
        "preferred_tone": "professional",
        "proposal_length": "medium",
        "template_id": "tpl_0a1b2c3d4e5f"
    }
    ```
    """
    try:
        logger.info(f"[ProposalAPI] Generating proposal for brief {request.brief_id}")
        proposal = await service.generate_proposal(ctx, request)
        ticket.commit()
        return GenerateProposalResponse(success=True, proposal_id=proposal["proposal_id"])

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AIResponseError as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate proposal: {str(e)}")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ProposalAPI] Error generating proposal: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate proposal: {str(e)}")


# ===================== READ =====================

@router.get("", response_model=ProposalListResponse)
async def list_proposals(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    ctx: UserContext = Depends(verify_user),
    service: ProposalService = Depends(get_proposal_service)
):
    """List your proposals, newest first."""
    try:
        proposals = service.list_proposals(ctx, skip=skip, limit=limit)
        return ProposalListResponse(success=True, proposals=proposals, count=len(proposals))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ProposalAPI] Error listing proposals: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to list proposals: {str(e)}")


@router.get("/{proposal_id}", response_model=ProposalResponse)
async def get_proposal(
    proposal_id: str,
    ctx: UserContext = Depends(verify_user),
    service: ProposalService = Depends(get_proposal_service)
):
    try:
        return ProposalResponse(success=True, proposal=_with_tiers(service.get_proposal(ctx, proposal_id)))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ProposalAPI] Error fetching proposal {proposal_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch proposal: {str(e)}")


# ===================== UPDATE =====================

@router.patch("/{proposal_id}", response_model=ProposalResponse)
async def update_proposal(
    proposal_id: str,
    update: ProposalUpdate,
    ctx: UserContext = Depends(verify_user),
    service: ProposalService = Depends(get_proposal_service)
):
    """
    Partially update a proposal. Fields you omit keep their current value;
    inside `sections`, only the sections you send are replaced.
    """
    try:
        proposal = service.update_proposal(ctx, proposal_id, update)
        return ProposalResponse(success=True, proposal=_with_tiers(proposal))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ProposalAPI] Error updating proposal {proposal_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to update proposal: {str(e)}")


@router.post("/{proposal_id}/status", response_model=ProposalResponse)
async def update_proposal_status(
    proposal_id: str,
    request: UpdateProposalStatusRequest,
    ctx: UserContext = Depends(verify_user),
    service: ProposalService = Depends(get_proposal_service)
):
    """Move a proposal to sent, viewed, accepted, rejected or expired."""
    try:
        proposal = service.update_status(ctx, proposal_id, request.status)
        return ProposalResponse(success=True, proposal=_with_tiers(proposal))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ProposalAPI] Error updating status of {proposal_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to update proposal status: {str(e)}")


# ===================== SCORING =====================

@router.post("/{proposal_id}/score", response_model=QualityScoreResponse)
async def score_proposal(
    proposal_id: str,
    ctx: UserContext = Depends(verify_user),
    service: ProposalService = Depends(get_proposal_service)
):
    """Grade a proposal against its brief. The score is not stored."""
    try:
        result = await service.score_proposal(ctx, proposal_id)
        return QualityScoreResponse(success=True, proposal_id=proposal_id, quality=result.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AIResponseError as e:
        raise HTTPException(status_code=500, detail=f"Failed to score proposal: {str(e)}")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ProposalAPI] Error scoring proposal {proposal_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to score proposal: {str(e)}")
