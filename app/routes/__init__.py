"""
Routes package - exports all API routers
"""
from app.routes.users import router as users_router
from app.routes.clients import router as clients_router
from app.routes.briefs import router as briefs_router
from app.routes.proposals import router as proposals_router
from app.routes.templates import router as templates_router
from app.routes.subscription import router as subscription_router
from app.routes.admin import router as admin_router

__all__ = [
    "users_router",
    "clients_router",
    "briefs_router",
    "proposals_router",
    "templates_router",
    "subscription_router",
    "admin_router",
]
