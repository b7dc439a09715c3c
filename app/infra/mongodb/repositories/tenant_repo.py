"""
Tenant Repositories

User and Client repositories.

Every user authenticates with an API key (sha256-hashed at rest) and owns
its clients. Clients are always looked up scoped to their owner.
"""
import logging
import uuid
import hashlib
from typing import Optional, List, Dict, Any
from datetime import datetime
from pymongo import DESCENDING

from app.infra.mongodb.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[Dict[str, Any]]):
    """Repository for users and their API keys."""

    collection_name = "users"

    @staticmethod
    def hash_key(key: str) -> str:
        """Hash API key for secure storage."""
        return hashlib.sha256(key.encode()).hexdigest()

    def create(
        self,
        email: str,
        first_name: str,
        last_name: str,
        company_name: Optional[str] = None,
        hourly_rate: Optional[float] = None
    ) -> Dict[str, Any]:
        """Create a new user with auto-generated API key."""
        user_id = f"usr_{uuid.uuid4().hex[:12]}"
        api_key = f"ppk_{uuid.uuid4().hex}"  # ppk = proposal pilot key

        doc = {
            "user_id": user_id,
            "email": email.lower(),
            "first_name": first_name,
            "last_name": last_name,
            "company_name": company_name,
            "hourly_rate": hourly_rate,
            "api_key_hash": self.hash_key(api_key),
            "api_key_prefix": api_key[:8],  # For identification
            "is_active": True,
            "last_login": None
        }
        self.insert_one(doc)
        logger.info(f"Created user: {user_id} ({email})")

        # Return with unhashed key (only time it's visible)
        return {
            "user_id": user_id,
            "email": doc["email"],
            "api_key": api_key,
        }

    def get_by_api_key(self, api_key: str) -> Optional[Dict[str, Any]]:
        """Authenticate user by API key."""
        key_hash = self.hash_key(api_key)
        user = self.find_one({"api_key_hash": key_hash, "is_active": True})
        if user:
            self.collection.update_one(
                {"user_id": user["user_id"]},
                {"$set": {"last_login": datetime.utcnow()}}
            )
        return user

    def get_by_user_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get user by user_id."""
        return self.find_one({"user_id": user_id})

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Get user by email."""
        return self.find_one({"email": email.lower()})


class ClientRepository(BaseRepository[Dict[str, Any]]):
    """Repository for a user's clients (proposal recipients)."""

    collection_name = "clients"

    def create(
        self,
        user_id: str,
        name: str,
        email: Optional[str] = None,
        company_name: Optional[str] = None,
        industry: Optional[str] = None,
        website: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Dict[str, Any]:
        doc = {
            "client_id": f"cli_{uuid.uuid4().hex[:12]}",
            "user_id": user_id,
            "name": name,
            "email": email.lower() if email else None,
            "company_name": company_name,
            "industry": industry,
            "website": website,
            "notes": notes,
        }
        self.insert_one(doc)
        logger.info(f"Created client {doc['client_id']} for user {user_id}")
        return doc

    def get_for_user(self, client_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a client only if it is owned by user_id."""
        return self.find_one({"client_id": client_id, "user_id": user_id})

    def list_for_user(self, user_id: str, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return self.find_many(
            {"user_id": user_id},
            skip=skip,
            limit=limit,
            sort=[("created_at", DESCENDING)]
        )


# Singleton instances
_user_repo: Optional[UserRepository] = None
_client_repo: Optional[ClientRepository] = None


def get_user_repo() -> UserRepository:
    """Get singleton UserRepository."""
    global _user_repo
    if _user_repo is None:
        _user_repo = UserRepository()
    return _user_repo


def get_client_repo() -> ClientRepository:
    """Get singleton ClientRepository."""
    global _client_repo
    if _client_repo is None:
        _client_repo = ClientRepository()
    return _client_repo
