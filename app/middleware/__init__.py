"""
Middleware modules for authentication and quota enforcement
"""

from app.middleware.auth import (
    verify_key,
    verify_user,
    verify_super_admin,
    api_key_header,
)
from app.middleware.quota import (
    QuotaGuard,
    QuotaTicket,
    enforce_quota,
    get_quota_guard,
)

__all__ = [
    "verify_key",
    "verify_user",
    "verify_super_admin",
    "api_key_header",
    "QuotaGuard",
    "QuotaTicket",
    "enforce_quota",
    "get_quota_guard",
]
