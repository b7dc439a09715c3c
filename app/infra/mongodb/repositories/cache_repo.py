"""
LLM Cache Repository

Stores model responses keyed by prompt hash. Entries expire through the
TTL index on expires_at; reads also skip entries past expiry since the TTL
monitor only runs periodically.
"""
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

from app.infra.mongodb.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LLMCacheRepository(BaseRepository[Dict[str, Any]]):
    """Repository for cached LLM responses (fast lookup by prompt hash)."""

    collection_name = "llm_cache"

    def get_response(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """Get a cached response if present and not expired."""
        result = self.collection.find_one({
            "cache_key": cache_key,
            "expires_at": {"$gt": datetime.utcnow()}
        })
        if result:
            logger.debug(f"LLM cache hit: {cache_key}")
            return result.get("response")
        return None

    def set_response(
        self,
        cache_key: str,
        model: str,
        response: Dict[str, Any],
        ttl_hours: int = 24
    ) -> bool:
        """Cache a response, replacing any previous entry for the key."""
        now = datetime.utcnow()
        result = self.collection.update_one(
            {"cache_key": cache_key},
            {
                "$set": {
                    "cache_key": cache_key,
                    "model": model,
                    "response": response,
                    "cached_at": now,
                    "expires_at": now + timedelta(hours=ttl_hours)
                }
            },
            upsert=True
        )
        return result.acknowledged


# Singleton instance
_llm_cache_repo: Optional[LLMCacheRepository] = None


def get_llm_cache_repo() -> LLMCacheRepository:
    """Get singleton LLMCacheRepository instance."""
    global _llm_cache_repo
    if _llm_cache_repo is None:
        _llm_cache_repo = LLMCacheRepository()
    return _llm_cache_repo
