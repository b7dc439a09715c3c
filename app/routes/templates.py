"""
Template Routes - system, public and owned proposal templates
"""
import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from app.domain.context import UserContext
from app.domain.errors import NotFoundError
from app.middleware.auth import verify_user
from app.models.api_schema import TemplateResponse, TemplateListResponse
from app.services.template_service import TemplateService, get_template_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/templates", tags=["templates"])


@router.get("", response_model=TemplateListResponse)
async def list_templates(
    category: Optional[str] = Query(None, max_length=100),
    ctx: UserContext = Depends(verify_user),
    service: TemplateService = Depends(get_template_service)
):
    """Templates you can use, system templates first, then by popularity."""
    try:
        templates = service.list_templates(ctx, category=category)
        return TemplateListResponse(success=True, templates=templates, count=len(templates))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[TemplateAPI] Error listing templates: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to list templates: {str(e)}")


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    ctx: UserContext = Depends(verify_user),
    service: TemplateService = Depends(get_template_service)
):
    try:
        return TemplateResponse(success=True, template=service.get_template(ctx, template_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[TemplateAPI] Error fetching template {template_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch template: {str(e)}")
