"""
Brief Routes

- POST /api/briefs                 create a brief (DRAFT)
- GET  /api/briefs/{brief_id}      get a brief
- POST /api/briefs/{brief_id}/analyze   run AI analysis on a DRAFT brief
"""
import logging
from fastapi import APIRouter, HTTPException, Depends

from app.domain.context import UserContext
from app.domain.errors import NotFoundError, PreconditionError, AIResponseError
from app.middleware.auth import verify_user
from app.models.api_schema import CreateBriefRequest, BriefResponse
from app.services.brief_service import BriefService, get_brief_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/briefs", tags=["briefs"])


@router.post("", response_model=BriefResponse, status_code=201)
async def create_brief(
    request: CreateBriefRequest,
    ctx: UserContext = Depends(verify_user),
    service: BriefService = Depends(get_brief_service)
):
    """Create a brief from raw client text. Analysis is a separate step."""
    try:
        brief = service.create_brief(
            ctx,
            request.title,
            request.raw_content,
            client_name=request.client_name,
            industry=request.industry,
        )
        return BriefResponse(success=True, brief=brief)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[BriefAPI] Error creating brief: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to create brief: {str(e)}")


@router.get("/{brief_id}", response_model=BriefResponse)
async def get_brief(
    brief_id: str,
    ctx: UserContext = Depends(verify_user),
    service: BriefService = Depends(get_brief_service)
):
    try:
        return BriefResponse(success=True, brief=service.get_brief(ctx, brief_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[BriefAPI] Error fetching brief {brief_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch brief: {str(e)}")


@router.post(
    "/{brief_id}/analyze",
    response_model=BriefResponse,
    responses={
        400: {"description": "Brief is not in draft status"},
        404: {"description": "Brief not found"},
        500: {"description": "AI analysis failed; brief marked failed"}
    }
)
async def analyze_brief(
    brief_id: str,
    ctx: UserContext = Depends(verify_user),
    service: BriefService = Depends(get_brief_service)
):
    """
    Analyze a brief with AI.

    On success the brief moves to `analyzed` and carries the structured
    analysis plus token/cost estimates. On failure it moves to `failed`.
    """
    try:
        brief = await service.analyze_brief(ctx, brief_id)
        return BriefResponse(success=True, brief=brief)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AIResponseError as e:
        raise HTTPException(status_code=500, detail=f"Failed to analyze brief: {str(e)}")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[BriefAPI] Error analyzing brief {brief_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to analyze brief: {str(e)}")
