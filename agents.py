"""
AI Agent Roles for Justice Lab
Remote agents behind the Justice Lab backend: case writer, audience
director, judging assistant, scorer and appellate court.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx
from pydantic import ValidationError

from config import Settings, get_settings
from errors import (
    AIResponseError,
    AIServiceError,
    AITimeoutError,
    MalformedPayloadError,
    MissingCredentialError,
)
from game_engine import REASONING_MAX_CHARS, merge_audience_with_templates
from schemas import (
    RULING_OPTIONS,
    SKILL_AXES,
    AppealDecision,
    AudienceScene,
    Case,
    Objection,
    Ruling,
    RulingSuggestion,
    Run,
    ScoreReport,
    JudgingResult,
    as_dict,
    as_number,
    as_text,
    as_text_list,
)
from seeded_rng import clamp

logger = logging.getLogger(__name__)

T = TypeVar("T")

TokenProvider = Callable[[], Optional[str]]


class AgentRole(str, Enum):
    CASE_WRITER = "Case Writer"
    AUDIENCE_DIRECTOR = "Audience Director"
    JUDGING_ASSISTANT = "Judging Assistant"
    SCORER = "Scorer"
    APPELLATE_COURT = "Appellate Court"


AGENT_ENDPOINTS = {
    AgentRole.CASE_WRITER: "/justice-lab/generate-case",
    AgentRole.AUDIENCE_DIRECTOR: "/justice-lab/audience",
    AgentRole.JUDGING_ASSISTANT: "/justice-lab/ai-judge",
    AgentRole.SCORER: "/justice-lab/score",
    AgentRole.APPELLATE_COURT: "/justice-lab/appeal",
}


async def with_timeout(awaitable: Awaitable[T], seconds: float) -> T:
    """Race a request against a timer; the loser is cancelled."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise AITimeoutError(seconds) from None


def case_context(case: Case) -> dict:
    """The slice of a case the backend needs to stage a hearing."""
    return {
        "caseId": case.case_id,
        "domaine": case.domain.value,
        "level": case.level.value,
        "title": case.title,
        "summary": case.summary,
        "parties": {key: party.to_json_dict() for key, party in case.parties.items()},
        "pieces": [piece.to_json_dict() for piece in case.pieces],
        "legalIssues": list(case.legal_issues),
    }


class CourtAgent:
    """One backend endpoint, called with a bearer token and a deadline."""

    def __init__(
        self,
        role: AgentRole,
        path: str,
        api_base: str,
        token_provider: TokenProvider,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.role = role
        self.url = f"{api_base.rstrip('/')}{path}"
        self.token_provider = token_provider
        self.transport = transport

    async def _send(self, payload: dict, token: str) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"}
        async with httpx.AsyncClient(transport=self.transport, timeout=None) as client:
            return await client.post(self.url, json=payload, headers=headers)

    async def post(self, payload: dict, timeout: float) -> dict:
        """POST ``payload`` and return the decoded JSON object."""
        token = self.token_provider()
        if not token:
            raise MissingCredentialError()

        try:
            response = await with_timeout(self._send(payload, token), timeout)
        except httpx.HTTPError as e:
            logger.error(f"{self.role.value} request failed: {str(e)}")
            raise AIServiceError(f"{self.role.value} request failed: {e}") from e

        if response.status_code == 401:
            raise MissingCredentialError()
        if not response.is_success:
            logger.error(f"{self.role.value} returned HTTP {response.status_code}")
            raise AIResponseError(response.status_code, response.text[:500])

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedPayloadError(f"{self.role.value} returned invalid JSON") from e
        if not isinstance(body, dict):
            raise MalformedPayloadError(f"{self.role.value} returned a non-object body")
        return body


class AgentManager:
    """Creates the courtroom agents and shapes their requests and responses."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        provider = token_provider or (lambda: self.settings.api_token)
        self.agents = {
            role: CourtAgent(role, path, self.settings.api_base, provider, transport)
            for role, path in AGENT_ENDPOINTS.items()
        }

    def get_agent(self, role: AgentRole) -> CourtAgent:
        return self.agents[role]

    async def _ask(self, role: AgentRole, payload: dict, timeout: Optional[float] = None) -> dict:
        return await self.agents[role].post(payload, timeout or self.settings.ai_timeout)

    async def generate_case(self, payload: dict, timeout: Optional[float] = None) -> dict:
        """Request a raw case; the body must carry ``caseData`` or ``case``."""
        body = await self._ask(AgentRole.CASE_WRITER, payload, timeout)
        raw = body.get("caseData") or body.get("case")
        if not isinstance(raw, dict):
            raise MalformedPayloadError("Response has no case payload")
        return raw

    async def generate_audience(
        self,
        case: Case,
        run: Run,
        timeout: Optional[float] = None,
    ) -> AudienceScene:
        payload = {
            "caseData": case_context(case),
            "role": run.answers.role.value,
            "procedureChoice": run.answers.procedure_choice,
            "procedureJustification": run.answers.procedure_justification,
            "lang": self.settings.lang,
        }
        body = await self._ask(AgentRole.AUDIENCE_DIRECTOR, payload, timeout)
        scene = body.get("audience") or body.get("scene")
        if not isinstance(scene, dict):
            raise MalformedPayloadError("Response has no audience scene")
        return merge_audience_with_templates(case, scene)

    async def suggest_ruling(
        self,
        case: Case,
        objection: Objection,
        draft_decision: str = "",
        role: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> RulingSuggestion:
        payload = {
            "caseData": case_context(case),
            "objection": objection.to_json_dict(),
            "draftDecision": draft_decision,
            "role": role or "Judge",
            "lang": self.settings.lang,
        }
        body = await self._ask(AgentRole.JUDGING_ASSISTANT, payload, timeout)
        choice = as_text(body.get("choice"))
        if choice not in RULING_OPTIONS:
            choice = Ruling.CLARIFY.value
        return RulingSuggestion(choice=choice, reasoning=as_text(body.get("reasoning"))[:REASONING_MAX_CHARS])

    async def judge_run(self, case: Case, run: Run, timeout: Optional[float] = None) -> JudgingResult:
        """Ask the scorer for the axes the engine does not compute itself."""
        payload = {
            "caseData": case.to_json_dict(),
            "runData": run.to_json_dict(),
            "lang": self.settings.lang,
        }
        body = await self._ask(AgentRole.SCORER, payload, timeout)
        raw_scores = as_dict(body.get("scores"))
        scores = {}
        for axis in SKILL_AXES:
            value = as_number(raw_scores.get(axis), default=None)
            if value is not None:
                scores[axis] = clamp(value, 0, 100)
        if not scores:
            raise MalformedPayloadError("Response carries no scores")
        return JudgingResult(scores=scores, comments=as_text_list(body.get("comments")))

    async def request_appeal(
        self,
        case: Case,
        run: Run,
        report: ScoreReport,
        timeout: Optional[float] = None,
    ) -> AppealDecision:
        payload: dict[str, Any] = {
            "caseData": case.to_json_dict(),
            "runData": run.to_json_dict(),
            "scores": report.to_json_dict(),
            "lang": self.settings.lang,
        }
        body = await self._ask(AgentRole.APPELLATE_COURT, payload, timeout)
        try:
            decision = AppealDecision.model_validate({
                "decision": as_text(body.get("decision")).upper(),
                "grounds": as_text_list(body.get("grounds")),
                "dispositif": as_text(body.get("dispositif")),
                "recommendations": as_text_list(body.get("recommendations")),
            })
        except ValidationError as e:
            raise MalformedPayloadError(f"Invalid appeal decision: {e.error_count()} errors") from e
        logger.info(f"Appeal decided for run {run.run_id}: {decision.decision.value}")
        return decision
