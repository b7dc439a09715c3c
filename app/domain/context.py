"""
Caller identity passed explicitly into service operations.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserContext:
    """Authenticated caller resolved from the X-API-Key header."""
    user_id: Optional[str]
    email: Optional[str] = None
    role: str = "user"
