"""
Pydantic schemas for Justice Lab cases, runs and aggregate stats.

Attributes are snake_case in Python; every model serializes to the
camelCase JSON shape persisted by the stores and exchanged with the
AI backend (dump with ``by_alias=True``).
"""

import math
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================
# LOOSE PAYLOAD HELPERS
# ============================================================
# AI responses and legacy stored runs arrive loosely typed; these
# coerce a single value and never raise.

def as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def as_list(value) -> list:
    return value if isinstance(value, list) else []


def as_text(value, default: str = "") -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def as_number(value, default: float = 0) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def as_text_list(value) -> list[str]:
    return [text for text in (as_text(item) for item in as_list(value)) if text]


def camel_key(name: str) -> str:
    """case_id -> caseId; keys that are already camelCase or start with _ pass through."""
    if name.startswith("_") or "_" not in name:
        return name
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=camel_key, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ============================================================
# ENUMS
# ============================================================

class Domain(str, Enum):
    PENAL = "Penal"
    LAND = "Land"
    LABOR = "Labor"
    CONSTITUTIONAL = "Constitutional"
    MILITARY_PENAL = "Military-Penal"
    FAMILY = "Family"
    COMMERCIAL = "Commercial/OHADA"
    ADMINISTRATIVE = "Administrative"


class Level(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class RoleType(str, Enum):
    JUDGE = "Judge"
    PROSECUTOR = "Prosecutor"
    PLAINTIFF_COUNSEL = "Plaintiff-Counsel"
    DEFENSE_COUNSEL = "Defense-Counsel"
    CLERK = "Clerk"


class RunStep(str, Enum):
    BRIEFING = "Briefing"
    QUALIFICATION = "Qualification"
    PROCEDURE = "Procedure"
    AUDIENCE = "Audience"
    DECISION = "Decision"
    SCORE = "Score"
    APPEAL = "Appeal"
    RESULT = "Result"


STEP_DISPLAY = {
    RunStep.BRIEFING: "Step 1: Case Briefing",
    RunStep.QUALIFICATION: "Step 2: Legal Qualification",
    RunStep.PROCEDURE: "Step 3: Procedural Choice",
    RunStep.AUDIENCE: "Step 4: Hearing & Objections",
    RunStep.DECISION: "Step 5: Decision Drafting",
    RunStep.SCORE: "Step 6: Scoring",
    RunStep.APPEAL: "Step 7: Appeal",
    RunStep.RESULT: "Step 8: Result",
}


class Ruling(str, Enum):
    SUSTAIN = "Sustain"
    OVERRULE = "Overrule"
    CLARIFY = "Request clarification"


RULING_OPTIONS = [r.value for r in Ruling]

# Best ruling per role for an objection, keyed on the filer label:
# None -> always ask for clarification; otherwise the role sustains an
# objection whose filer label contains the token and overrules the rest.
BEST_CHOICE_RULES = {
    RoleType.JUDGE.value: None,
    RoleType.CLERK.value: None,
    RoleType.PROSECUTOR.value: "prosecutor",
    RoleType.PLAINTIFF_COUNSEL.value: "plaintiff-counsel",
    RoleType.DEFENSE_COUNSEL.value: "defense-counsel",
}


def best_choice_for(filed_by: str) -> dict[str, str]:
    filer = str(filed_by or "").lower()
    table = {}
    for role, token in BEST_CHOICE_RULES.items():
        if token is None:
            table[role] = Ruling.CLARIFY.value
        else:
            table[role] = Ruling.SUSTAIN.value if token in filer else Ruling.OVERRULE.value
    return table


class PieceStatus(str, Enum):
    OK = "OK"
    EXCLUDED = "EXCLUDED"
    LATE_ADMITTED = "LATE_ADMITTED"


class AppealOutcome(str, Enum):
    CONFIRMATION = "CONFIRMATION"
    ANNULATION = "ANNULATION"
    RENVOI = "RENVOI"


class StageStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    DONE = "DONE"


class CalendarStatus(str, Enum):
    PLANNED = "PLANNED"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class IncidentMode(str, Enum):
    SUGGEST = "SUGGEST"  # listed on the trial only
    APPLY = "APPLY"  # also recorded on the run, with points and bonus


# ============================================================
# CASE TEMPLATES (static catalog)
# ============================================================

class PartySlot(BaseModel):
    key: str
    labels: list[str]  # role labels drawn per case
    names: list[str] = []  # fixed names for institutions; empty -> drawn person name


class PieceSeed(BaseModel):
    type: str
    titles: list[str]
    contents: list[str]


class EventSeed(BaseModel):
    title: str
    impact: str


class ObjectionSeed(BaseModel):
    by: str
    title: str
    statement: str
    appeal_risk_penalty: float = 0
    due_process_bonus: float = 0


class CaseTemplate(BaseModel):
    template_id: str
    domain: Domain
    base_title: str
    levels: list[Level] = []
    parties: list[PartySlot]
    facts: list[str]
    legal_issues: list[str]
    pieces: list[PieceSeed]
    events: list[EventSeed]
    objections: list[ObjectionSeed]


class CourtInfo(BaseModel):
    court: str
    chamber: str
    hearing_type: str


class TrialStageTemplate(BaseModel):
    stage_id: str
    title: str
    objective: str
    min_turns: int
    min_objections: int
    include_incidents: bool = True


class CalendarSeed(BaseModel):
    type: str
    day: int  # offset from the trial's start date
    label: str
    detail: str = ""
    stage_id: Optional[str] = None


class IncidentRule(BaseModel):
    """An auto-incident suggested at ``stages`` (any stage when empty) when the guards hold."""
    type: str
    label: str
    detail: str
    stages: list[str] = []
    domains: list[Domain] = []
    requires_late_piece: bool = False
    requires_missing_summons: bool = False


# ============================================================
# CASE
# ============================================================

class Party(CamelModel):
    name: str
    role: str


class Piece(CamelModel):
    id: str
    title: str
    type: str
    content: str = ""
    is_late: bool = False
    reliability: int = Field(100, ge=0, le=100)


class EventCard(CamelModel):
    id: str
    title: str
    impact: str = ""


class RiskDelta(CamelModel):
    appeal_risk_penalty: float = 0
    due_process_bonus: float = 0


class ObjectionEffects(CamelModel):
    exclude_piece_ids: list[str] = []
    admit_late_piece_ids: list[str] = []
    risk: RiskDelta = Field(default_factory=RiskDelta)

    @classmethod
    def from_loose(cls, raw) -> "ObjectionEffects":
        raw = as_dict(raw)
        risk = as_dict(raw.get("risk"))
        return cls(
            exclude_piece_ids=as_text_list(raw.get("excludePieceIds")),
            admit_late_piece_ids=as_text_list(raw.get("admitLatePieceIds")),
            risk=RiskDelta(
                appeal_risk_penalty=max(0, as_number(risk.get("appealRiskPenalty", raw.get("appealRiskPenalty")))),
                due_process_bonus=max(0, as_number(risk.get("dueProcessBonus", raw.get("dueProcessBonus")))),
            ),
        )


class Objection(CamelModel):
    id: str
    by: str
    title: str
    statement: str = ""
    options: list[str] = Field(default_factory=lambda: list(RULING_OPTIONS))
    best_choice_by_role: dict[str, str] = {}
    effects: ObjectionEffects = Field(default_factory=ObjectionEffects)

    @classmethod
    def from_loose(cls, raw, fallback_id: str) -> "Objection":
        """Build an objection from an AI payload, filling gaps with defaults."""
        raw = as_dict(raw)
        by = as_text(raw.get("by")) or RoleType.DEFENSE_COUNSEL.value
        best = {
            role: choice
            for role, choice in as_dict(raw.get("bestChoiceByRole")).items()
            if isinstance(role, str) and choice in RULING_OPTIONS
        }
        return cls(
            id=as_text(raw.get("id")) or fallback_id,
            by=by,
            title=as_text(raw.get("title")) or "Objection",
            statement=as_text(raw.get("statement"))[:600],
            best_choice_by_role=best or best_choice_for(by),
            effects=ObjectionEffects.from_loose(raw.get("effects") or raw.get("effect")),
        )


class Pedagogy(CamelModel):
    level: str
    objectives: list[str] = []
    common_pitfalls: list[str] = []
    audience_checklist: list[str] = []


class CaseMeta(CamelModel):
    template_id: str
    seed: str
    city: str
    court: str
    chamber: str
    generated_at: str
    source: str = "generated"  # base | generated | ai | import
    origin_domain: Optional[str] = None
    user_prompt: str = ""
    filename: Optional[str] = None
    excerpt: Optional[str] = None


class Case(CamelModel):
    """A simulated legal dossier. Never mutated once generated."""
    case_id: str
    domain: Domain
    level: Level
    title: str
    summary: str = ""
    jurisdiction: str
    hearing_type: str
    parties: dict[str, Party] = {}
    legal_issues: list[str] = []
    pieces: list[Piece] = []
    events_deck: list[EventCard] = []
    objection_templates: list[Objection] = []
    pedagogy: Pedagogy
    meta: CaseMeta


# ============================================================
# RUN
# ============================================================

class CaseSnapshot(CamelModel):
    case_id: str = ""
    title: str = ""
    domain: str = ""
    level: str = ""


class TranscriptTurn(CamelModel):
    speaker: str
    text: str = ""


class AudienceScene(CamelModel):
    scene_meta: dict[str, Any] = {}
    transcript: list[TranscriptTurn] = []
    objections: list[Objection] = []


class DecisionRecord(CamelModel):
    objection_id: str
    decision: str
    reasoning: str = ""
    timestamp: str
    role: str
    micro_score: int
    effects: ObjectionEffects = Field(default_factory=ObjectionEffects)


class AudienceAnswers(CamelModel):
    scene: Optional[AudienceScene] = None
    decisions: list[DecisionRecord] = []


class Answers(CamelModel):
    role: RoleType = RoleType.JUDGE
    qualification: str = ""
    procedure_choice: Optional[str] = None
    procedure_justification: str = ""
    audience: AudienceAnswers = Field(default_factory=AudienceAnswers)
    decision_motivation: str = ""
    decision_dispositif: str = ""


class RiskModifiers(CamelModel):
    appeal_risk_penalty: float = 0
    due_process_bonus: float = 0


class Chrono(CamelModel):
    running: bool = False
    started_at: Optional[str] = None
    elapsed_ms: int = 0


class AuditEntry(CamelModel):
    id: str
    ts: str
    action: str
    title: str = ""
    detail: str = ""
    meta: dict[str, Any] = {}


class Incident(CamelModel):
    id: str
    ts: str
    type: str
    title: str = ""
    detail: str = ""
    actor: str = ""
    points: int = 1


class MinuteEntry(CamelModel):
    """One line of a stage's hearing minutes."""
    id: str
    ts: str
    by: str = ""
    text: str


class TrialStage(CamelModel):
    id: str
    title: str = ""
    objective: str = ""
    order: int = 0
    status: StageStatus = StageStatus.PENDING
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    audience_scene: Optional[AudienceScene] = None
    minutes: list[MinuteEntry] = []  # oldest first
    score: Optional[float] = None
    notes: list[str] = []


class CalendarEvent(CamelModel):
    id: str
    ts: str
    type: str
    date: str  # YYYY-MM-DD
    label: str = ""
    detail: str = ""
    stage_id: Optional[str] = None
    status: CalendarStatus = CalendarStatus.PLANNED


class ProceduralCalendar(CamelModel):
    version: int = 1
    events: list[CalendarEvent] = []
    last_updated_at: Optional[str] = None


class JournalEntry(CamelModel):
    ts: str
    type: str
    text: str = ""


class IncidentSuggestion(CamelModel):
    type: str
    label: str
    detail: str = ""


class TrialIncident(IncidentSuggestion):
    id: str
    ts: str
    stage_id: str = ""
    status: str = "SUGGESTED"  # SUGGESTED | RECORDED


class Trial(CamelModel):
    """Multi-hearing timeline of a run: stages, procedural calendar and journal."""
    version: str = "V1"
    created_at: str
    current_stage_id: str = ""
    stages: list[TrialStage] = []
    calendar: ProceduralCalendar = Field(default_factory=ProceduralCalendar)
    incidents: list[TrialIncident] = []  # oldest first
    journal: list[JournalEntry] = []  # oldest first


class RunState(CamelModel):
    excluded_piece_ids: list[str] = []
    admitted_late_piece_ids: list[str] = []
    audience_micro: float = Field(0, alias="_audienceMicro")
    risk_modifiers: RiskModifiers = Field(default_factory=RiskModifiers)
    audit_log: list[AuditEntry] = []  # newest first
    chrono: Chrono = Field(default_factory=Chrono)
    incidents: list[Incident] = []  # newest first
    trial: Optional[Trial] = None


class Scores(CamelModel):
    qualification: float = 0
    procedure: float = 0
    audience: float = 0
    rights: float = 0
    motivation: float = 0


SKILL_AXES = list(Scores.model_fields)


class Flag(CamelModel):
    level: str
    label: str
    detail: str = ""


class AppealDecision(CamelModel):
    decision: AppealOutcome
    grounds: list[str] = []
    dispositif: str = ""
    recommendations: list[str] = []


class ScoreReport(CamelModel):
    score_global: int
    scores: Scores
    flags: list[Flag] = []
    debrief: list[str] = []


class EffectivePiece(Piece):
    status: PieceStatus = PieceStatus.OK


class PiecesSummary(CamelModel):
    groups: dict[PieceStatus, list[EffectivePiece]]
    counts: dict[PieceStatus, int]
    total: int


class Run(CamelModel):
    """One user's playthrough of a Case."""
    run_id: str
    case_id: str = ""
    case_meta: CaseSnapshot = Field(default_factory=CaseSnapshot)
    started_at: str
    finished_at: Optional[str] = None
    step: RunStep = RunStep.BRIEFING
    event_card: Optional[EventCard] = None
    answers: Answers = Field(default_factory=Answers)
    state: RunState = Field(default_factory=RunState)
    scores: Scores = Field(default_factory=Scores)
    score_global: float = 0
    flags: list[Flag] = []
    debrief: list[str] = []
    appeal: Optional[AppealDecision] = None
    stats_counted: bool = False


# ============================================================
# STATS
# ============================================================

class DomainStats(CamelModel):
    runs: int = 0
    avg: float = 0
    best: float = 0


class SkillStats(CamelModel):
    avg: float = 0
    n: int = 0


class Stats(CamelModel):
    total_runs: int = 0
    avg_score: float = 0
    best_score: float = 0
    last_run_at: Optional[str] = None
    by_domain: dict[str, DomainStats] = {}
    skills: dict[str, SkillStats] = Field(
        default_factory=lambda: {axis: SkillStats() for axis in SKILL_AXES}
    )


# ============================================================
# AI PAYLOADS
# ============================================================

class RulingSuggestion(CamelModel):
    choice: str
    reasoning: str = ""


class JudgingResult(CamelModel):
    scores: dict[str, float] = {}
    comments: list[str] = []
