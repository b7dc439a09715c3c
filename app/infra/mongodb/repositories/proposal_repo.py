"""
Proposal Repository

Handles all operations for the proposals collection: persisting generated
drafts, owner-scoped lookups, content updates and lifecycle transitions.
"""
import logging
import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime
from pymongo import DESCENDING

from app.domain.constants import ProposalStatus
from app.infra.mongodb.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProposalRepository(BaseRepository[Dict[str, Any]]):
    """Repository for generated proposals."""

    collection_name = "proposals"

    def create(self, proposal_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Save a generated proposal draft.

        Args:
            proposal_data: Proposal fields (blobs already serialized)

        Returns:
            Stored document including proposal_id
        """
        try:
            doc = {
                "proposal_id": f"prop_{uuid.uuid4().hex[:12]}",
                "status": ProposalStatus.DRAFT.value,
                "view_count": 0,
                "first_viewed_at": None,
                "last_viewed_at": None,
                "sent_at": None,
                "accepted_at": None,
                "rejected_at": None,
                "expires_at": None,
                "share_token": uuid.uuid4().hex,
                "is_public": False,
            }
            doc.update(proposal_data)
            self.insert_one(doc)
            logger.info(f"Saved proposal {doc['proposal_id']} for brief: {doc.get('brief_id')}")
            return doc
        except Exception as e:
            logger.error(f"Error saving proposal: {e}")
            raise

    def get_for_user(self, proposal_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a proposal only if it belongs to user_id."""
        return self.find_one({"proposal_id": proposal_id, "user_id": user_id})

    def list_for_user(self, user_id: str, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        """List a user's proposals, newest first."""
        return self.find_many(
            {"user_id": user_id},
            skip=skip,
            limit=limit,
            sort=[("created_at", DESCENDING)]
        )

    def count_created_since(self, user_id: str, since: datetime) -> int:
        """Count proposals a user created on or after `since`."""
        return self.count({"user_id": user_id, "created_at": {"$gte": since}})

    def update_fields(self, proposal_id: str, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Set fields on a user's proposal and return the updated document."""
        return self.find_one_and_update(
            {"proposal_id": proposal_id, "user_id": user_id},
            {"$set": fields}
        )

    def transition_status(
        self,
        proposal_id: str,
        user_id: str,
        from_status: ProposalStatus,
        update: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Apply a status update only if the proposal is still in from_status.

        Returns:
            Updated document, or None if the status changed concurrently
        """
        return self.find_one_and_update(
            {"proposal_id": proposal_id, "user_id": user_id, "status": from_status.value},
            update
        )


# Singleton instance
_proposal_repo: Optional[ProposalRepository] = None


def get_proposal_repo() -> ProposalRepository:
    """Get singleton ProposalRepository instance."""
    global _proposal_repo
    if _proposal_repo is None:
        _proposal_repo = ProposalRepository()
    return _proposal_repo
