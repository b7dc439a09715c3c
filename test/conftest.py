"""
Shared fixtures: in-memory repositories, a scripted LLM and a wired app.

The fakes keep the method names and return shapes of the MongoDB
repositories so services and routes run unchanged on top of them.
"""

import copy
import hashlib
import json
import uuid
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from dateutil.relativedelta import relativedelta

from app.config import settings
from app.domain.constants import BriefStatus, ProposalStatus, SubscriptionPlan, UNLIMITED
from app.domain.context import UserContext
from app.middleware.quota import QuotaGuard
from app.models.api_schema import GenerateProposalRequest
from app.services.brief_analyzer import BriefAnalyzer
from app.services.brief_service import BriefService
from app.services.proposal_generator import ProposalGenerator
from app.services.proposal_service import ProposalService
from app.services.quality_scorer import QualityScorer
from app.services.template_service import TemplateService
from app.utils.openai_service import LLMResponse
from app.utils.prompt_engine import (
    BRIEF_ANALYZER_SYSTEM_PROMPT,
    PROPOSAL_GENERATOR_SYSTEM_PROMPT,
    QUALITY_SCORER_SYSTEM_PROMPT,
)


# ===================== SAMPLE MODEL REPLIES =====================

SAMPLE_BRIEF_TEXT = (
    "We are a regional bakery chain looking for a new e-commerce website. "
    "Customers should be able to order cakes online for pickup, pay by card, "
    "and get SMS reminders. We need it live before the holiday season."
)

SAMPLE_ANALYSIS = {
    "project_overview": {
        "type": "E-commerce Website",
        "industry": "Food & Beverage",
        "complexity": "medium",
        "confidence_score": 85,
    },
    "requirements": {
        "explicit": ["Online cake ordering", "Card payments"],
        "implicit": ["Mobile friendly checkout"],
        "technical": ["Payment gateway", "SMS provider"],
        "deliverables": ["Website", "Admin dashboard"],
    },
    "client_insights": {
        "pain_points": ["Phone orders overwhelm staff"],
        "success_criteria": ["Online orders before holidays"],
        "decision_factors": ["Timeline", "Price"],
    },
    "project_signals": {
        "timeline": {"urgency": "high", "duration_estimate": "8 weeks", "key_dates": ["November 15"]},
        "budget": {"signals": ["Small business"], "range_estimate": "$8k-$15k", "pricing_sensitivity": "high"},
    },
    "risk_assessment": {
        "red_flags": [],
        "clarification_needed": ["Number of locations"],
        "scope_creep_risks": ["Loyalty program"],
    },
    "recommended_approach": {
        "proposal_tone": "friendly",
        "key_themes": ["Speed to launch", "Ease of ordering", "Reliability", "Local brand"],
        "differentiators": ["Food retail experience"],
        "pricing_strategy": "tiered",
    },
}


def make_tier(name: str, price: float, highlighted: bool = False) -> Dict[str, Any]:
    return {
        "name": name,
        "price": price,
        "description": f"{name} package",
        "features": [f"{name} feature"],
        "timeline": "6 weeks",
        "highlighted": highlighted,
    }


SAMPLE_PROPOSAL = {
    "title": "Online Ordering for Your Bakery",
    "sections": {
        "opening_hook": "<p>Your customers already love your cakes.</p>",
        "problem_statement": "<p>Phone orders overwhelm your staff.</p>",
        "proposed_solution": "<p>A fast ordering site with card payments.</p>",
        "methodology": "<p>Discovery, design, build, launch.</p>",
        "timeline": "<p>Live in 8 weeks.</p>",
        "investment": {
            "intro": "<p>Three ways to get started.</p>",
            "tiers": [
                make_tier("Essential", 8000),
                make_tier("Recommended", 12000, highlighted=True),
                make_tier("Premium", 18000),
            ],
        },
        "why_choose_us": "<p>We have launched ten food retail stores.</p>",
        "next_steps": "<p>Book a 20 minute call this week.</p>",
    },
    "metadata": {"word_count": 650, "estimated_read_time": "3 min", "tone": "friendly"},
}

SAMPLE_SCORE = {
    "overall_score": 82,
    "grade": "B+",
    "win_probability": "high",
    "scores": {
        "relevance": {"score": 25, "max": 30, "feedback": "Addresses ordering pain"},
        "persuasiveness": {"score": 20, "max": 25, "feedback": "Good proof"},
    },
    "strengths": ["Clear timeline"],
    "improvements": [
        {"priority": "low", "section": "next_steps", "issue": "Vague", "suggestion": "Offer a date"},
        {"priority": "critical", "section": "investment", "issue": "No ROI", "suggestion": "Add ROI"},
        {"priority": "high", "section": "opening_hook", "issue": "Generic", "suggestion": "Name the client"},
    ],
    "quick_wins": ["Add a testimonial"],
}


def llm_reply(payload: Any, model: str = "gpt-4o-mini") -> LLMResponse:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return LLMResponse(text=text, input_tokens=500, output_tokens=900, model=model)


class ScriptedLLM:
    """
    Stands in for CachedOpenAIService.

    complete is an AsyncMock so tests can assert on calls and swap replies
    per system prompt through `replies`.
    """

    def __init__(self):
        self.replies: Dict[str, Any] = {
            BRIEF_ANALYZER_SYSTEM_PROMPT: SAMPLE_ANALYSIS,
            PROPOSAL_GENERATOR_SYSTEM_PROMPT: SAMPLE_PROPOSAL,
            QUALITY_SCORER_SYSTEM_PROMPT: SAMPLE_SCORE,
        }
        self.complete = AsyncMock(side_effect=self._reply)

    async def _reply(self, message: str, system_prompt: str, **kwargs) -> LLMResponse:
        reply = self.replies[system_prompt]
        if isinstance(reply, Exception):
            raise reply
        return llm_reply(reply, model=kwargs.get("model") or "gpt-4o")

    def calls_for(self, system_prompt: str) -> List[Any]:
        return [c for c in self.complete.call_args_list if c.args[1] == system_prompt]


# ===================== IN-MEMORY REPOSITORIES =====================

def _apply(doc: Dict[str, Any], update: Dict[str, Any]) -> None:
    if not any(key.startswith("$") for key in update):
        update = {"$set": update}
    for key, value in update.get("$set", {}).items():
        doc[key] = value
    for key, value in update.get("$inc", {}).items():
        doc[key] = doc.get(key, 0) + value
    doc["updated_at"] = datetime.utcnow()


class FakeBriefRepository:

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    def create(self, user_id, title, raw_content, client_name=None, industry=None) -> Dict[str, Any]:
        doc = {
            "brief_id": f"brf_{uuid.uuid4().hex[:12]}",
            "user_id": user_id,
            "title": title.strip(),
            "raw_content": raw_content,
            "client_name": client_name,
            "status": BriefStatus.DRAFT.value,
            "analyzed_content": None,
            "industry": industry,
            "estimated_budget": None,
            "analyzed_at": None,
            "tokens_used": None,
            "analysis_cost": None,
            "created_at": datetime.utcnow(),
        }
        self.docs[doc["brief_id"]] = doc
        return copy.deepcopy(doc)

    def get_for_user(self, brief_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(brief_id)
        if doc and doc["user_id"] == user_id:
            return copy.deepcopy(doc)
        return None

    def claim_for_analysis(self, brief_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(brief_id)
        if not doc or doc["user_id"] != user_id or doc["status"] != BriefStatus.DRAFT.value:
            return None
        _apply(doc, {"status": BriefStatus.ANALYZING.value})
        return copy.deepcopy(doc)

    def save_analysis(self, brief_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        doc = self.docs[brief_id]
        _apply(doc, dict(fields, status=BriefStatus.ANALYZED.value, analyzed_at=datetime.utcnow()))
        return copy.deepcopy(doc)

    def mark_failed(self, brief_id: str) -> bool:
        _apply(self.docs[brief_id], {"status": BriefStatus.FAILED.value})
        return True


class FakeProposalRepository:

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    def create(self, proposal_data: Dict[str, Any]) -> Dict[str, Any]:
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
            "created_at": datetime.utcnow(),
        }
        doc.update(proposal_data)
        self.docs[doc["proposal_id"]] = doc
        return copy.deepcopy(doc)

    def get_for_user(self, proposal_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(proposal_id)
        if doc and doc["user_id"] == user_id:
            return copy.deepcopy(doc)
        return None

    def list_for_user(self, user_id: str, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        docs = [d for d in self.docs.values() if d["user_id"] == user_id]
        docs.sort(key=lambda d: d["created_at"], reverse=True)
        return copy.deepcopy(docs[skip:skip + limit])

    def count_created_since(self, user_id: str, since: datetime) -> int:
        return sum(1 for d in self.docs.values() if d["user_id"] == user_id and d["created_at"] >= since)

    def update_fields(self, proposal_id: str, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(proposal_id)
        if not doc or doc["user_id"] != user_id:
            return None
        _apply(doc, {"$set": fields})
        return copy.deepcopy(doc)

    def transition_status(self, proposal_id, user_id, from_status, update) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(proposal_id)
        if not doc or doc["user_id"] != user_id or doc["status"] != from_status.value:
            return None
        _apply(doc, update)
        return copy.deepcopy(doc)


class FakeSubscriptionRepository:

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    def get_by_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(user_id)
        return copy.deepcopy(doc) if doc else None

    def upsert_plan(self, user_id: str, plan: SubscriptionPlan, is_active: bool = True) -> Dict[str, Any]:
        now = datetime.utcnow()
        doc = self.docs.setdefault(user_id, {
            "subscription_id": f"sub_{uuid.uuid4().hex[:12]}",
            "user_id": user_id,
            "start_date": now,
            "proposals_used_this_month": 0,
            "usage_reset_date": now + relativedelta(months=1),
        })
        doc.update({
            "plan": plan.value,
            "monthly_price": plan.monthly_price,
            "proposals_per_month": plan.proposals_per_month,
            "is_active": is_active,
        })
        return copy.deepcopy(doc)

    def put(self, user_id: str, **fields) -> Dict[str, Any]:
        """Store a subscription document directly."""
        doc = {
            "subscription_id": f"sub_{uuid.uuid4().hex[:12]}",
            "user_id": user_id,
            "plan": "starter",
            "proposals_per_month": 5,
            "proposals_used_this_month": 0,
            "is_active": True,
            "usage_reset_date": datetime.utcnow() + relativedelta(months=1),
        }
        doc.update(fields)
        self.docs[user_id] = doc
        return doc

    def reset_usage(self, user_id, expected_reset_date, new_reset_date) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(user_id)
        if not doc or doc["usage_reset_date"] != expected_reset_date:
            return None
        doc.update(proposals_used_this_month=0, usage_reset_date=new_reset_date)
        return copy.deepcopy(doc)

    def reserve_slot(self, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(user_id)
        if not doc or not doc["is_active"]:
            return None
        per_month = doc["proposals_per_month"]
        if per_month != UNLIMITED and doc["proposals_used_this_month"] >= per_month:
            return None
        doc["proposals_used_this_month"] += 1
        return copy.deepcopy(doc)

    def release_slot(self, user_id: str) -> bool:
        doc = self.docs.get(user_id)
        if not doc or doc["proposals_used_this_month"] <= 0:
            return False
        doc["proposals_used_this_month"] -= 1
        return True


class FakeUserRepository:

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def hash_key(key: str) -> str:
        return hashlib.sha256(key.encode()).hexdigest()

    def create(self, email, first_name, last_name, company_name=None, hourly_rate=None) -> Dict[str, Any]:
        user_id = f"usr_{uuid.uuid4().hex[:12]}"
        api_key = f"ppk_{uuid.uuid4().hex}"
        self.docs[user_id] = {
            "user_id": user_id,
            "email": email.lower(),
            "first_name": first_name,
            "last_name": last_name,
            "company_name": company_name,
            "hourly_rate": hourly_rate,
            "api_key_hash": self.hash_key(api_key),
            "is_active": True,
        }
        return {"user_id": user_id, "email": email.lower(), "api_key": api_key}

    def get_by_api_key(self, api_key: str) -> Optional[Dict[str, Any]]:
        key_hash = self.hash_key(api_key)
        for doc in self.docs.values():
            if doc["api_key_hash"] == key_hash and doc["is_active"]:
                return copy.deepcopy(doc)
        return None

    def get_by_user_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(user_id)
        return copy.deepcopy(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        for doc in self.docs.values():
            if doc["email"] == email.lower():
                return copy.deepcopy(doc)
        return None


class FakeClientRepository:

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    def create(self, user_id, name, email=None, company_name=None, industry=None, website=None, notes=None):
        doc = {
            "client_id": f"cli_{uuid.uuid4().hex[:12]}",
            "user_id": user_id,
            "name": name,
            "email": email.lower() if email else None,
            "company_name": company_name,
            "industry": industry,
            "website": website,
            "notes": notes,
            "created_at": datetime.utcnow(),
        }
        self.docs[doc["client_id"]] = doc
        return copy.deepcopy(doc)

    def get_for_user(self, client_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(client_id)
        if doc and doc["user_id"] == user_id:
            return copy.deepcopy(doc)
        return None

    def list_for_user(self, user_id: str, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return [copy.deepcopy(d) for d in self.docs.values() if d["user_id"] == user_id][skip:skip + limit]


class FakeTemplateRepository:

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    def _accessible(self, doc: Dict[str, Any], user_id: str) -> bool:
        return doc.get("is_system_template") or doc.get("is_public") or doc.get("user_id") == user_id

    def put(self, **fields) -> Dict[str, Any]:
        doc = {
            "template_id": f"tpl_{uuid.uuid4().hex[:12]}",
            "name": "Custom",
            "category": "General",
            "content": json.dumps({"introduction": "Hello"}),
            "is_system_template": False,
            "is_public": False,
            "user_id": None,
            "usage_count": 0,
        }
        doc.update(fields)
        self.docs[doc["template_id"]] = doc
        return doc

    def seed_system_templates(self, templates: List[Dict[str, Any]]) -> int:
        inserted = 0
        for template in templates:
            if any(d["is_system_template"] and d["name"] == template["name"] for d in self.docs.values()):
                continue
            self.put(**dict(template, is_system_template=True, is_public=True))
            inserted += 1
        return inserted

    def get_accessible(self, template_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(template_id)
        if doc and self._accessible(doc, user_id):
            return copy.deepcopy(doc)
        return None

    def list_accessible(self, user_id: str, category: Optional[str] = None, limit: int = 100):
        docs = [d for d in self.docs.values() if self._accessible(d, user_id)]
        if category:
            docs = [d for d in docs if d.get("category") == category]
        docs.sort(key=lambda d: (not d["is_system_template"], -d["usage_count"], d["name"]))
        return copy.deepcopy(docs[:limit])

    def increment_usage(self, template_id: str) -> bool:
        self.docs[template_id]["usage_count"] += 1
        return True


# ===================== FIXTURES =====================

@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def repos():
    return SimpleNamespace(
        briefs=FakeBriefRepository(),
        proposals=FakeProposalRepository(),
        subscriptions=FakeSubscriptionRepository(),
        users=FakeUserRepository(),
        clients=FakeClientRepository(),
        templates=FakeTemplateRepository(),
    )


@pytest.fixture
def brief_service(repos, llm):
    return BriefService(
        repos.briefs,
        BriefAnalyzer(llm, model="gpt-4o-mini"),
        analysis_model="gpt-4o-mini",
    )


@pytest.fixture
def template_service(repos):
    return TemplateService(repos.templates)


@pytest.fixture
def proposal_service(repos, llm, template_service):
    return ProposalService(
        proposal_repo=repos.proposals,
        brief_repo=repos.briefs,
        user_repo=repos.users,
        client_repo=repos.clients,
        template_service=template_service,
        generator=ProposalGenerator(llm, model="gpt-4o"),
        scorer=QualityScorer(llm, model="gpt-4o-mini"),
        default_hourly_rate=100,
    )


@pytest.fixture
def quota_guard(repos):
    return QuotaGuard(
        repos.subscriptions,
        repos.proposals,
        repos.users,
        free_tier_limit=3,
        free_tier_window_days=30,
        fail_open=True,
    )


@pytest.fixture
def user(repos):
    """A registered user with one client."""
    created = repos.users.create(
        "owner@studio.dev", "Ada", "Lovelace", company_name="Lovelace Studio", hourly_rate=120
    )
    client = repos.clients.create(created["user_id"], "Crumb & Co", email="orders@crumb.co")
    return {
        "ctx": UserContext(user_id=created["user_id"], email=created["email"]),
        "api_key": created["api_key"],
        "client_id": client["client_id"],
    }


@pytest.fixture
def analyzed_brief(repos, user):
    """A brief already in ANALYZED state with the sample analysis stored."""
    brief = repos.briefs.create(user["ctx"].user_id, "Bakery ordering site", SAMPLE_BRIEF_TEXT)
    repos.briefs.save_analysis(brief["brief_id"], {"analyzed_content": json.dumps(SAMPLE_ANALYSIS)})
    return repos.briefs.get_for_user(brief["brief_id"], user["ctx"].user_id)


@pytest_asyncio.fixture
async def proposal(proposal_service, user, analyzed_brief):
    """A generated DRAFT proposal for the analyzed brief."""
    request = GenerateProposalRequest(brief_id=analyzed_brief["brief_id"], client_id=user["client_id"])
    return await proposal_service.generate_proposal(user["ctx"], request)


@pytest.fixture
def admin_key(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_KEY", "test-admin-key")
    return "test-admin-key"


@pytest.fixture
def api(repos, brief_service, proposal_service, template_service, quota_guard, admin_key):
    """TestClient over the real app with repositories and services swapped for fakes."""
    from fastapi.testclient import TestClient

    from main import app
    from app.infra.mongodb.repositories import get_user_repo, get_client_repo, get_subscription_repo
    from app.middleware.quota import get_quota_guard
    from app.services.brief_service import get_brief_service
    from app.services.proposal_service import get_proposal_service
    from app.services.template_service import get_template_service

    app.dependency_overrides.update({
        get_user_repo: lambda: repos.users,
        get_client_repo: lambda: repos.clients,
        get_subscription_repo: lambda: repos.subscriptions,
        get_quota_guard: lambda: quota_guard,
        get_brief_service: lambda: brief_service,
        get_proposal_service: lambda: proposal_service,
        get_template_service: lambda: template_service,
    })
    # No context manager: the lifespan would connect to MongoDB
    yield TestClient(app)
    app.dependency_overrides.clear()
