"""
Tests for proposal generation

Validates that generation:
- Refuses briefs that are not analyzed before any model call
- Resolves user, client and optional template (missing template is skipped)
- Stores content_json, brief snapshots and one JSON column per pricing tier
- Builds a generation message with the requester profile and customization
"""

import json

import pytest

from app.domain.constants import ProposalStatus
from app.domain.errors import AIResponseError, NotFoundError, PreconditionError
from app.models.ai_schema import BriefAnalysisResult, InvestmentSection
from app.models.api_schema import GenerateProposalRequest
from app.services.proposal_service import dump_tiers, tier_blobs
from app.utils.prompt_engine import PROPOSAL_GENERATOR_SYSTEM_PROMPT, build_generation_message

from conftest import SAMPLE_ANALYSIS, SAMPLE_BRIEF_TEXT, SAMPLE_PROPOSAL, make_tier


def _request(brief, user, **overrides):
    data = {"brief_id": brief["brief_id"], "client_id": user["client_id"]}
    data.update(overrides)
    return GenerateProposalRequest(**data)


class TestGenerateProposal:

    @pytest.mark.asyncio
    async def test_generates_draft_with_snapshots_and_tiers(self, proposal_service, repos, llm, user, analyzed_brief):
        proposal = await proposal_service.generate_proposal(user["ctx"], _request(analyzed_brief, user))

        assert proposal["status"] == ProposalStatus.DRAFT.value
        assert proposal["title"] == SAMPLE_PROPOSAL["title"]
        assert proposal["description"] == "Proposal for Bakery ordering site"
        assert proposal["client_id"] == user["client_id"]
        assert proposal["template_id"] is None
        assert proposal["original_brief"] == SAMPLE_BRIEF_TEXT
        assert proposal["brief_analysis"] == analyzed_brief["analyzed_content"]

        content = json.loads(proposal["content_json"])
        assert set(content) == {"sections", "investment", "metadata"}
        assert "investment" not in content["sections"]
        assert content["sections"]["next_steps"] == SAMPLE_PROPOSAL["sections"]["next_steps"]

        assert json.loads(proposal["basic_tier_json"])["name"] == "Essential"
        assert json.loads(proposal["standard_tier_json"])["highlighted"] is True
        assert json.loads(proposal["premium_tier_json"])["price"] == 18000

        assert len(llm.calls_for(PROPOSAL_GENERATOR_SYSTEM_PROMPT)) == 1

    @pytest.mark.asyncio
    async def test_generation_skips_the_response_cache(self, proposal_service, llm, user, analyzed_brief):
        await proposal_service.generate_proposal(user["ctx"], _request(analyzed_brief, user))

        call = llm.calls_for(PROPOSAL_GENERATOR_SYSTEM_PROMPT)[0]
        assert call.kwargs["use_cache"] is False
        assert call.kwargs["model"] == "gpt-4o"

    @pytest.mark.asyncio
    async def test_unanalyzed_brief_is_rejected_before_model_call(self, proposal_service, repos, llm, user):
        brief = repos.briefs.create(user["ctx"].user_id, "Bakery ordering site", SAMPLE_BRIEF_TEXT)

        with pytest.raises(PreconditionError, match="analyzed"):
            await proposal_service.generate_proposal(user["ctx"], _request(brief, user))

        llm.complete.assert_not_called()
        assert repos.proposals.docs == {}

    @pytest.mark.asyncio
    async def test_failed_brief_is_rejected(self, proposal_service, repos, llm, user):
        brief = repos.briefs.create(user["ctx"].user_id, "Bakery ordering site", SAMPLE_BRIEF_TEXT)
        repos.briefs.mark_failed(brief["brief_id"])

        with pytest.raises(PreconditionError):
            await proposal_service.generate_proposal(user["ctx"], _request(brief, user))

        llm.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_brief_is_not_found(self, proposal_service, user):
        request = GenerateProposalRequest(brief_id="brf_missing", client_id=user["client_id"])

        with pytest.raises(NotFoundError, match="Brief"):
            await proposal_service.generate_proposal(user["ctx"], request)

    @pytest.mark.asyncio
    async def test_other_users_client_is_not_found(self, proposal_service, repos, llm, user, analyzed_brief):
        other = repos.users.create("other@studio.dev", "Grace", "Hopper")
        foreign_client = repos.clients.create(other["user_id"], "Not yours")

        with pytest.raises(NotFoundError, match="Client"):
            await proposal_service.generate_proposal(
                user["ctx"], _request(analyzed_brief, user, client_id=foreign_client["client_id"])
            )

        llm.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_accessible_template_is_used_and_counted(self, proposal_service, repos, llm, user, analyzed_brief):
        template = repos.templates.put(
            name="Bakery Launch", user_id=user["ctx"].user_id, tags=json.dumps(["food", "retail"])
        )

        proposal = await proposal_service.generate_proposal(
            user["ctx"], _request(analyzed_brief, user, template_id=template["template_id"])
        )

        assert proposal["template_id"] == template["template_id"]
        assert repos.templates.docs[template["template_id"]]["usage_count"] == 1

        message = llm.calls_for(PROPOSAL_GENERATOR_SYSTEM_PROMPT)[0].args[0]
        assert "TEMPLATE TO FOLLOW" in message
        assert "Name: Bakery Launch" in message
        assert "Tags: food, retail" in message

    @pytest.mark.asyncio
    async def test_inaccessible_template_is_skipped(self, proposal_service, repos, llm, user, analyzed_brief):
        other = repos.users.create("other@studio.dev", "Grace", "Hopper")
        private = repos.templates.put(name="Private", user_id=other["user_id"])

        proposal = await proposal_service.generate_proposal(
            user["ctx"], _request(analyzed_brief, user, template_id=private["template_id"])
        )

        assert proposal["template_id"] is None
        assert repos.templates.docs[private["template_id"]]["usage_count"] == 0
        message = llm.calls_for(PROPOSAL_GENERATOR_SYSTEM_PROMPT)[0].args[0]
        assert "TEMPLATE TO FOLLOW" not in message

    @pytest.mark.asyncio
    async def test_more_than_three_tiers_is_rejected(self, proposal_service, repos, llm, user, analyzed_brief):
        reply = json.loads(json.dumps(SAMPLE_PROPOSAL))
        reply["sections"]["investment"]["tiers"].append(make_tier("Platinum", 30000))
        llm.replies[PROPOSAL_GENERATOR_SYSTEM_PROMPT] = reply

        with pytest.raises(AIResponseError):
            await proposal_service.generate_proposal(user["ctx"], _request(analyzed_brief, user))

        assert repos.proposals.docs == {}

    @pytest.mark.asyncio
    async def test_missing_tiers_leave_empty_columns(self, proposal_service, llm, user, analyzed_brief):
        reply = json.loads(json.dumps(SAMPLE_PROPOSAL))
        reply["sections"]["investment"]["tiers"] = [make_tier("Only", 5000)]
        llm.replies[PROPOSAL_GENERATOR_SYSTEM_PROMPT] = reply

        proposal = await proposal_service.generate_proposal(user["ctx"], _request(analyzed_brief, user))

        assert json.loads(proposal["basic_tier_json"])["name"] == "Only"
        assert proposal["standard_tier_json"] == ""
        assert proposal["premium_tier_json"] == ""
        assert [tier["name"] for tier in dump_tiers(proposal)] == ["Only"]


class TestGenerationMessage:

    def test_profile_and_customization_defaults(self):
        analysis = BriefAnalysisResult.model_validate(SAMPLE_ANALYSIS)

        message = build_generation_message(analysis, user_name="Ada Lovelace")

        assert "Name: Ada Lovelace" in message
        assert "Company: Independent Consultant" in message
        assert "Hourly Rate: $100" in message
        assert "Preferred Tone: professional" in message
        assert "Proposal Length: medium" in message
        # Emphasis falls back to the first three key themes
        assert "Emphasis: Focus on Speed to launch, Ease of ordering, Reliability" in message
        assert "Local brand" not in message.split("CUSTOMIZATION:")[1]

    def test_explicit_customization(self):
        analysis = BriefAnalysisResult.model_validate(SAMPLE_ANALYSIS)

        message = build_generation_message(
            analysis,
            user_name="Ada Lovelace",
            company_name="Lovelace Studio",
            hourly_rate=120,
            tone="consultative",
            length="short",
            emphasis="mobile checkout",
        )

        assert "Company: Lovelace Studio" in message
        assert "Hourly Rate: $120" in message
        assert "Preferred Tone: consultative" in message
        assert "Proposal Length: short" in message
        assert "Emphasis: Focus on mobile checkout" in message

    @pytest.mark.asyncio
    async def test_service_passes_user_profile_and_brief_tone(self, proposal_service, llm, user, analyzed_brief):
        await proposal_service.generate_proposal(user["ctx"], _request(analyzed_brief, user))

        message = llm.calls_for(PROPOSAL_GENERATOR_SYSTEM_PROMPT)[0].args[0]
        assert "Name: Ada Lovelace" in message
        assert "Company: Lovelace Studio" in message
        assert "Hourly Rate: $120" in message
        # No preferred tone in the request: the analysis' recommended tone is used
        assert "Preferred Tone: friendly" in message


class TestTierBlobs:

    def test_tiers_map_in_order(self):
        investment = InvestmentSection(tiers=[make_tier("A", 1), make_tier("B", 2)])

        blobs = tier_blobs(investment)

        assert json.loads(blobs["basic_tier_json"])["name"] == "A"
        assert json.loads(blobs["standard_tier_json"])["name"] == "B"
        assert blobs["premium_tier_json"] == ""

    def test_no_tiers(self):
        assert tier_blobs(InvestmentSection()) == {
            "basic_tier_json": "",
            "standard_tier_json": "",
            "premium_tier_json": "",
        }


def test_request_rejects_unknown_tone():
    with pytest.raises(ValueError):
        GenerateProposalRequest(brief_id="brf_1", client_id="cli_1", preferred_tone="sarcastic")