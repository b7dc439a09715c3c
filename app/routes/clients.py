"""
Client Routes - the caller's proposal recipients
"""
import logging
from fastapi import APIRouter, HTTPException, Depends

from app.domain.context import UserContext
from app.infra.mongodb.repositories import get_client_repo
from app.middleware.auth import verify_user
from app.models.api_schema import CreateClientRequest, ClientResponse, ClientListResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    request: CreateClientRequest,
    ctx: UserContext = Depends(verify_user),
    client_repo=Depends(get_client_repo)
):
    try:
        client = client_repo.create(ctx.user_id, **request.model_dump())
        return ClientResponse(success=True, client=client)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ClientAPI] Error creating client: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to create client: {str(e)}")


@router.get("", response_model=ClientListResponse)
async def list_clients(
    ctx: UserContext = Depends(verify_user),
    client_repo=Depends(get_client_repo)
):
    try:
        clients = client_repo.list_for_user(ctx.user_id)
        return ClientListResponse(success=True, clients=clients, count=len(clients))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ClientAPI] Error listing clients: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to list clients: {str(e)}")
