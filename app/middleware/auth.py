"""
API Key Auth Middleware

Roles:
- super_admin: Platform admin (env var ADMIN_API_KEY)
- user: Registered user (key issued by POST /api/users)

Every authenticated request resolves to an explicit UserContext that the
routes pass into service calls.
"""
from typing import Optional
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from app.config import settings
from app.domain.context import UserContext
from app.infra.mongodb.repositories import get_user_repo

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

SUPER_ADMIN = UserContext(user_id=None, email=None, role="super_admin")


def get_master_key() -> str:
    return settings.ADMIN_API_KEY or "dev-key"


async def verify_key(
    api_key: Optional[str] = Security(api_key_header),
    user_repo=Depends(get_user_repo)
) -> UserContext:
    """
    Verify API key and return the caller's context.
    """
    if not api_key:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "API key required")

    if api_key == get_master_key():
        return SUPER_ADMIN

    user = user_repo.get_by_api_key(api_key)
    if user:
        return UserContext(user_id=user["user_id"], email=user.get("email"), role="user")

    raise HTTPException(status.HTTP_403_FORBIDDEN, "Invalid API key")


async def verify_super_admin(api_key: Optional[str] = Security(api_key_header)) -> UserContext:
    """Only platform super admin (master key from .env)."""
    if not api_key or api_key != get_master_key():
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Super Admin access required")
    return SUPER_ADMIN


async def verify_user(ctx: UserContext = Depends(verify_key)) -> UserContext:
    """A registered user. The master key has no user scope and is rejected here."""
    if not ctx.user_id:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "User API key required")
    return ctx
