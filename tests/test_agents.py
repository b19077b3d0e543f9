"""
Remote agents and the AI generation paths, served by httpx.MockTransport.
"""
import asyncio
import json

import httpx
import pytest

from agents import AGENT_ENDPOINTS, AgentRole, with_timeout
from case_data import TEMPLATE_BY_DOMAIN
from case_generator import build_case
from errors import (
    AIResponseError,
    AIServiceError,
    AITimeoutError,
    MalformedPayloadError,
    MissingCredentialError,
)
from schemas import AppealOutcome, Domain, Level, Ruling, ScoreReport, Scores


def _json_handler(body, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return handler


def _payload(request: httpx.Request) -> dict:
    return json.loads(request.content)


def _without_timestamp(case):
    data = case.to_json_dict()
    data["meta"].pop("generatedAt")
    return data


# ============================================================
# TRANSPORT & ERRORS
# ============================================================

class TestCourtAgent:
    @pytest.mark.asyncio
    async def test_posts_with_bearer_token(self, make_agents):
        seen = []
        agents = make_agents(_json_handler({"ok": True}, seen=seen))
        body = await agents.get_agent(AgentRole.SCORER).post({"a": 1}, timeout=1)

        assert body == {"ok": True}
        assert seen[0].url.path == AGENT_ENDPOINTS[AgentRole.SCORER]
        assert seen[0].headers["Authorization"] == "Bearer test-token"
        assert _payload(seen[0]) == {"a": 1}

    @pytest.mark.asyncio
    async def test_missing_token_never_sends(self, make_agents):
        seen = []
        agents = make_agents(_json_handler({}, seen=seen), token=None)
        with pytest.raises(MissingCredentialError) as exc_info:
            await agents.get_agent(AgentRole.SCORER).post({}, timeout=1)
        assert exc_info.value.status_code == 401
        assert seen == []

    @pytest.mark.asyncio
    async def test_unauthorized_is_missing_credential(self, make_agents):
        agents = make_agents(_json_handler({"error": "nope"}, status_code=401))
        with pytest.raises(MissingCredentialError):
            await agents.get_agent(AgentRole.SCORER).post({}, timeout=1)

    @pytest.mark.asyncio
    async def test_non_2xx(self, make_agents):
        agents = make_agents(_json_handler({"error": "boom"}, status_code=502))
        with pytest.raises(AIResponseError) as exc_info:
            await agents.get_agent(AgentRole.SCORER).post({}, timeout=1)
        assert exc_info.value.status_code == 502
        assert "boom" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_agents):
        agents = make_agents(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(MalformedPayloadError):
            await agents.get_agent(AgentRole.SCORER).post({}, timeout=1)

    @pytest.mark.asyncio
    async def test_non_object_body(self, make_agents):
        agents = make_agents(_json_handler([1, 2, 3]))
        with pytest.raises(MalformedPayloadError):
            await agents.get_agent(AgentRole.SCORER).post({}, timeout=1)

    @pytest.mark.asyncio
    async def test_network_error(self, make_agents):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        agents = make_agents(handler)
        with pytest.raises(AIServiceError):
            await agents.get_agent(AgentRole.SCORER).post({}, timeout=1)

    @pytest.mark.asyncio
    async def test_deadline(self, make_agents):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        agents = make_agents(handler)
        with pytest.raises(AITimeoutError) as exc_info:
            await agents.get_agent(AgentRole.SCORER).post({}, timeout=0.05)
        assert exc_info.value.seconds == 0.05

    @pytest.mark.asyncio
    async def test_with_timeout_passes_result_through(self):
        async def quick():
            return 42

        assert await with_timeout(quick(), 1) == 42


# ============================================================
# CASE GENERATION
# ============================================================

class TestHybridGeneration:
    @pytest.mark.asyncio
    async def test_local_when_ai_disabled(self, make_generator):
        seen = []
        generator = make_generator(_json_handler({}, seen=seen))
        case = await generator.generate_case_hybrid("TPL_LABOR_DISMISSAL", "4", ai=False)
        assert seen == []
        assert case.meta.source == "generated"
        assert case.case_id == build_case("TPL_LABOR_DISMISSAL", "4").case_id

    @pytest.mark.asyncio
    async def test_enrich_request_and_hydration(self, make_generator, case_cache):
        seen = []
        raw = {"caseData": {"title": "Wrongful dismissal of a guard", "summary": "A guard was dismissed."}}
        generator = make_generator(_json_handler(raw, seen=seen))
        case = await generator.generate_case_hybrid("TPL_LABOR_DISMISSAL", "4", level="Advanced", ai=True)

        sent = _payload(seen[0])
        assert sent["mode"] == "enrich"
        assert sent["templateId"] == "TPL_LABOR_DISMISSAL"
        assert sent["seed"] == "4"
        assert sent["level"] == "Advanced"
        assert case.title == "Wrongful dismissal of a guard"
        assert case.domain == Domain.LABOR
        assert case.level == Level.ADVANCED
        assert case.meta.source == "ai"
        assert case_cache.get(case.case_id) is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handler", [
        _json_handler({"error": "down"}, status_code=500),
        _json_handler({"unexpected": True}),
        lambda request: httpx.Response(200, content=b"not json"),
    ])
    async def test_failure_returns_local_case(self, make_generator, handler):
        generator = make_generator(handler)
        case = await generator.generate_case_hybrid("TPL_PENAL_DETENTION", "SAMPLE-1", level="Intermediate", ai=True)
        local = build_case("TPL_PENAL_DETENTION", "SAMPLE-1", "Intermediate")
        assert _without_timestamp(case) == _without_timestamp(local)

    @pytest.mark.asyncio
    async def test_missing_token_falls_back(self, make_generator):
        generator = make_generator(_json_handler({"caseData": {"title": "x"}}), token="")
        case = await generator.generate_case_hybrid("TPL_PENAL_DETENTION", "1", ai=True)
        assert case.meta.source == "generated"

    @pytest.mark.asyncio
    async def test_no_backend(self, make_generator):
        case = await make_generator().generate_case_hybrid("TPL_PENAL_DETENTION", "1", ai=True)
        assert case.case_id == build_case("TPL_PENAL_DETENTION", "1").case_id


class TestDomainGeneration:
    @pytest.mark.asyncio
    async def test_full_request(self, make_generator, case_cache):
        seen = []
        raw = {"case": {"title": "Unpaid wages", "pieces": [{"title": "Payslip", "reliability": 90}]}}
        generator = make_generator(_json_handler(raw, seen=seen))
        case = await generator.generate_case_ai_by_domain("licenciement abusif", level="Beginner", seed="D1")

        sent = _payload(seen[0])
        assert sent["mode"] == "full"
        assert sent["domaine"] == "Labor"
        assert sent["seed"] == "D1"
        assert case.domain == Domain.LABOR
        assert case.meta.origin_domain == "Labor"
        assert case.pieces[0].is_late is True
        assert case_cache.get(case.case_id) is not None

    @pytest.mark.asyncio
    async def test_empty_summary_is_synthesized(self, make_generator):
        generator = make_generator(_json_handler({"caseData": {"title": "T"}}))
        first = await generator.generate_case_ai_by_domain(Domain.FAMILY, seed="S")
        second = await generator.generate_case_ai_by_domain(Domain.FAMILY, seed="S")
        assert first.summary.startswith("Family dossier")
        assert "Indicative stake" in first.summary
        assert first.summary == second.summary

    @pytest.mark.asyncio
    async def test_reused_case_id_does_not_overwrite_base_case(self, make_generator, case_cache):
        base = make_generator().base_cases()[0]
        generator = make_generator(_json_handler({"case": {"caseId": base.case_id, "title": "Impostor"}}))
        case = await generator.generate_case_ai_by_domain("Penal", seed="B1")

        assert case.case_id != base.case_id
        assert case.meta.seed.startswith("B1-u")
        assert case_cache.get(base.case_id).title == base.title
        assert case_cache.get(case.case_id).title == "Impostor"

    @pytest.mark.asyncio
    async def test_failure_uses_domain_template(self, make_generator):
        generator = make_generator(_json_handler({}, status_code=503))
        case = await generator.generate_case_ai_by_domain("Military-Penal", level="Advanced", seed="M")
        assert case.meta.template_id == TEMPLATE_BY_DOMAIN[Domain.MILITARY_PENAL]
        assert case.meta.seed == "M"
        assert case.level == Level.ADVANCED

    @pytest.mark.asyncio
    async def test_generated_seed(self, make_generator):
        case = await make_generator().generate_case_ai_by_domain("Land")
        assert case.meta.seed.startswith("AI:")


# ============================================================
# HEARING, JUDGING & APPEAL
# ============================================================

class TestHearingAgents:
    @pytest.mark.asyncio
    async def test_audience_merges_case_objections(self, make_agents, sample_case, sample_run):
        seen = []
        body = {"audience": {"transcript": [{"speaker": "Prosecutor", "text": "The detention is lawful."}]}}
        agents = make_agents(_json_handler(body, seen=seen))
        scene = await agents.generate_audience(sample_case, sample_run)

        sent = _payload(seen[0])
        assert sent["role"] == "Judge"
        assert sent["caseData"]["caseId"] == sample_case.case_id
        assert scene.transcript[0].speaker == "Prosecutor"
        assert [o.id for o in scene.objections] == [o.id for o in sample_case.objection_templates]
        assert scene.scene_meta["caseId"] == sample_case.case_id

    @pytest.mark.asyncio
    async def test_audience_without_scene(self, make_agents, sample_case, sample_run):
        agents = make_agents(_json_handler({"message": "ok"}))
        with pytest.raises(MalformedPayloadError):
            await agents.generate_audience(sample_case, sample_run)

    @pytest.mark.asyncio
    async def test_ruling_suggestion(self, make_agents, sample_case):
        objection = sample_case.objection_templates[0]
        agents = make_agents(_json_handler({"choice": "Sustain", "reasoning": "x" * 5000}))
        suggestion = await agents.suggest_ruling(sample_case, objection, "draft")
        assert suggestion.choice == Ruling.SUSTAIN.value
        assert len(suggestion.reasoning) == 1200

    @pytest.mark.asyncio
    async def test_unknown_ruling_becomes_clarification(self, make_agents, sample_case):
        agents = make_agents(_json_handler({"choice": "Dismiss everything"}))
        suggestion = await agents.suggest_ruling(sample_case, sample_case.objection_templates[0])
        assert suggestion.choice == Ruling.CLARIFY.value
        assert suggestion.reasoning == ""

    @pytest.mark.asyncio
    async def test_judging_scores_are_clamped(self, make_agents, sample_case, sample_run):
        body = {"scores": {"qualification": 140, "procedure": -3, "motivation": "55", "bogus": 9}, "comments": ["Good"]}
        agents = make_agents(_json_handler(body))
        result = await agents.judge_run(sample_case, sample_run)
        assert result.scores == {"qualification": 100, "procedure": 0, "motivation": 55}
        assert result.comments == ["Good"]

    @pytest.mark.asyncio
    async def test_judging_without_scores(self, make_agents, sample_case, sample_run):
        agents = make_agents(_json_handler({"scores": {}}))
        with pytest.raises(MalformedPayloadError):
            await agents.judge_run(sample_case, sample_run)

    @pytest.mark.asyncio
    async def test_appeal_decision(self, make_agents, sample_case, sample_run):
        seen = []
        body = {"decision": "annulation", "grounds": ["Rights of the defence ignored"], "dispositif": "Annulled."}
        agents = make_agents(_json_handler(body, seen=seen))
        report = ScoreReport(score_global=40, scores=Scores())
        decision = await agents.request_appeal(sample_case, sample_run, report)

        assert decision.decision == AppealOutcome.ANNULATION
        assert decision.grounds == ["Rights of the defence ignored"]
        assert _payload(seen[0])["scores"]["scoreGlobal"] == 40

    @pytest.mark.asyncio
    async def test_appeal_with_unknown_outcome(self, make_agents, sample_case, sample_run):
        agents = make_agents(_json_handler({"decision": "maybe"}))
        with pytest.raises(MalformedPayloadError):
            await agents.request_appeal(sample_case, sample_run, ScoreReport(score_global=0, scores=Scores()))
