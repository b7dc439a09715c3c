"""
MongoDB Repositories - Domain-specific data access.

Repository Pattern Implementation:
- BriefRepository - Client briefs and their analysis
- ProposalRepository - Generated proposals and lifecycle
- SubscriptionRepository - Plans, quotas and usage counters
- TemplateRepository - System and user proposal templates
- UserRepository, ClientRepository - Tenants and their clients
- LLMCacheRepository - Cached model responses
"""

from app.infra.mongodb.repositories.brief_repo import (
    BriefRepository,
    get_brief_repo,
)

from app.infra.mongodb.repositories.proposal_repo import (
    ProposalRepository,
    get_proposal_repo,
)

from app.infra.mongodb.repositories.subscription_repo import (
    SubscriptionRepository,
    get_subscription_repo,
)

from app.infra.mongodb.repositories.template_repo import (
    TemplateRepository,
    get_template_repo,
)

from app.infra.mongodb.repositories.tenant_repo import (
    UserRepository,
    ClientRepository,
    get_user_repo,
    get_client_repo,
)

from app.infra.mongodb.repositories.cache_repo import (
    LLMCacheRepository,
    get_llm_cache_repo,
)

__all__ = [
    # Briefs
    "BriefRepository",
    "get_brief_repo",
    # Proposals
    "ProposalRepository",
    "get_proposal_repo",
    # Subscriptions
    "SubscriptionRepository",
    "get_subscription_repo",
    # Templates
    "TemplateRepository",
    "get_template_repo",
    # Tenants
    "UserRepository",
    "ClientRepository",
    "get_user_repo",
    "get_client_repo",
    # LLM cache
    "LLMCacheRepository",
    "get_llm_cache_repo",
]
