"""
Template Repository

Proposal templates: immutable system templates plus user-owned ones.
A template is accessible to a user if it is a system template, public,
or owned by that user.
"""
import logging
import uuid
from typing import Optional, List, Dict, Any
from pymongo import ASCENDING, DESCENDING

from app.infra.mongodb.base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _access_filter(user_id: str) -> Dict[str, Any]:
    return {"$or": [
        {"is_system_template": True},
        {"is_public": True},
        {"user_id": user_id},
    ]}


class TemplateRepository(BaseRepository[Dict[str, Any]]):
    """Repository for proposal templates."""

    collection_name = "proposal_templates"

    def seed_system_templates(self, templates: List[Dict[str, Any]]) -> int:
        """
        Insert system templates that are not present yet (matched by name).

        Returns:
            Number of templates inserted
        """
        inserted = 0
        for template in templates:
            if self.exists({"is_system_template": True, "name": template["name"]}):
                continue
            doc = dict(template)
            doc.update({
                "template_id": f"tpl_{uuid.uuid4().hex[:12]}",
                "is_system_template": True,
                "is_public": True,
                "user_id": None,
                "usage_count": 0,
            })
            self.insert_one(doc)
            inserted += 1
        if inserted:
            logger.info(f"Seeded {inserted} system templates")
        return inserted

    def get_accessible(self, template_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a template if the user may use it."""
        query = {"template_id": template_id}
        query.update(_access_filter(user_id))
        return self.find_one(query)

    def list_accessible(
        self,
        user_id: str,
        category: Optional[str] = None,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        """List templates visible to the user, system templates first, then by usage."""
        query = _access_filter(user_id)
        if category:
            query = {"$and": [query, {"category": category}]}
        return self.find_many(
            query,
            limit=limit,
            sort=[("is_system_template", DESCENDING), ("usage_count", DESCENDING), ("name", ASCENDING)]
        )

    def increment_usage(self, template_id: str) -> bool:
        return self.update_one(
            {"template_id": template_id},
            {"$inc": {"usage_count": 1}}
        )


# Singleton instance
_template_repo: Optional[TemplateRepository] = None


def get_template_repo() -> TemplateRepository:
    """Get singleton TemplateRepository instance."""
    global _template_repo
    if _template_repo is None:
        _template_repo = TemplateRepository()
    return _template_repo
