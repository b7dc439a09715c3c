"""
Brief Repository

Handles the briefs collection: creation, owner-scoped lookup and the
draft -> analyzing -> analyzed | failed status transitions.
"""
import logging
import uuid
from typing import Optional, Dict, Any
from datetime import datetime

from app.domain.constants import BriefStatus
from app.infra.mongodb.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BriefRepository(BaseRepository[Dict[str, Any]]):
    """Repository for client briefs and their AI analysis."""

    collection_name = "briefs"

    def create(
        self,
        user_id: str,
        title: str,
        raw_content: str,
        client_name: Optional[str] = None,
        industry: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create a brief in DRAFT status.

        client_name and industry are optional hints passed to the analyzer.
        Analysis overwrites industry with what it detects.
        """
        doc = {
            "brief_id": f"brf_{uuid.uuid4().hex[:12]}",
            "user_id": user_id,
            "title": title.strip(),
            "raw_content": raw_content,
            "client_name": client_name,
            "status": BriefStatus.DRAFT.value,
            "analyzed_content": None,
            "project_type": None,
            "industry": industry,
            "estimated_budget": None,
            "timeline": None,
            "key_requirements": None,
            "technical_requirements": None,
            "target_audience": None,
            "analyzed_at": None,
            "tokens_used": None,
            "analysis_cost": None,
        }
        self.insert_one(doc)
        logger.info(f"Created brief {doc['brief_id']} for user {user_id}")
        return doc

    def get_for_user(self, brief_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a brief only if it belongs to user_id."""
        return self.find_one({"brief_id": brief_id, "user_id": user_id})

    def claim_for_analysis(self, brief_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Atomically move a DRAFT brief to ANALYZING.

        Returns:
            The claimed brief, or None if it is missing or not in DRAFT
        """
        return self.find_one_and_update(
            {"brief_id": brief_id, "user_id": user_id, "status": BriefStatus.DRAFT.value},
            {"$set": {"status": BriefStatus.ANALYZING.value}}
        )

    def save_analysis(self, brief_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Write analysis fields and mark the brief ANALYZED."""
        update = dict(fields)
        update["status"] = BriefStatus.ANALYZED.value
        update["analyzed_at"] = datetime.utcnow()
        return self.find_one_and_update({"brief_id": brief_id}, {"$set": update})

    def mark_failed(self, brief_id: str) -> bool:
        """Mark a brief FAILED after an analysis error."""
        return self.update_one(
            {"brief_id": brief_id},
            {"$set": {"status": BriefStatus.FAILED.value}}
        )


# Singleton instance
_brief_repo: Optional[BriefRepository] = None


def get_brief_repo() -> BriefRepository:
    """Get singleton BriefRepository instance."""
    global _brief_repo
    if _brief_repo is None:
        _brief_repo = BriefRepository()
    return _brief_repo
