"""
User Registration Route

Registers a user and returns a one-time API key. No subscription is
created: new users are on the implied free tier.
"""
import logging
from fastapi import APIRouter, HTTPException, Depends
from pymongo.errors import DuplicateKeyError

from app.infra.mongodb.repositories import get_user_repo
from app.models.api_schema import RegisterUserRequest, RegisterUserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=RegisterUserResponse, status_code=201)
async def register_user(request: RegisterUserRequest, user_repo=Depends(get_user_repo)):
    """Create a user. Save the returned api_key - it won't be shown again!"""
    try:
        if user_repo.get_by_email(request.email):
            raise HTTPException(status_code=400, detail="A user with this email already exists")

        created = user_repo.create(
            email=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            company_name=request.company_name,
            hourly_rate=request.hourly_rate,
        )
        return RegisterUserResponse(success=True, **created)

    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="A user with this email already exists")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[UserAPI] Error registering user: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to register user: {str(e)}")
