"""
Justice Lab Run Engine
Tracks one playthrough of a case: audience rulings, procedural incidents,
the multi-hearing trial timeline with its procedural calendar,
the hearing chronometer and the derived scores.

Every operation takes a Run and returns a new Run; the input is never
mutated and a Case is never written to.
"""

import copy
import random
import re
import uuid
from enum import Enum
from datetime import date, datetime, timedelta, timezone
from typing import Mapping, Optional, Union

from schemas import (
    AppealDecision,
    AuditEntry,
    AudienceScene,
    CalendarEvent,
    CalendarStatus,
    Case,
    CaseSnapshot,
    DecisionRecord,
    EffectivePiece,
    Flag,
    Incident,
    IncidentMode,
    IncidentSuggestion,
    JournalEntry,
    MinuteEntry,
    Objection,
    ObjectionEffects,
    PieceStatus,
    PiecesSummary,
    Ruling,
    Run,
    RunStep,
    ScoreReport,
    Scores,
    StageStatus,
    TranscriptTurn,
    Trial,
    TrialIncident,
    TrialStage,
    TrialStageTemplate,
    as_dict,
    as_list,
    as_text,
)
from case_data import (
    AUTO_INCIDENT_LIMIT,
    AUTO_INCIDENT_RULES,
    CONTINUANCE_EVENT_TYPES,
    DEFAULT_CALENDAR,
    TRIAL_STAGES,
)
from seeded_rng import Rng, clamp, pick, round_half_up

AUDIT_LOG_CAP = 250
INCIDENT_CAP = 80
DECISION_CAP = 60
REASONING_MAX_CHARS = 1200

MICRO_SCORE_BEST = 6
MICRO_SCORE_CLARIFY = 3
MICRO_SCORE_OTHER = 1

MICRO_SCORE_CEILING = 120
MODIFIER_CEILING = 20
HIGH_APPEAL_RISK = 10

# Points per incident type; unknown types score DEFAULT_INCIDENT_POINTS.
INCIDENT_POINTS = {
    "nullity": 6,
    "disclosure": 4,
    "communication": 4,
    "continuance": 3,
    "renvoi": 3,
    "joinder": 2,
    "severance": 2,
}
DEFAULT_INCIDENT_POINTS = 1
INCIDENT_BONUS_CAP = 2

MINUTES_CAP = 120
MINUTES_TEXT_MAX_CHARS = 1200
MINUTES_AUTHOR_MAX_CHARS = 24
STAGE_NOTES_CAP = 50
STAGE_NOTE_MAX_CHARS = 800
CALENDAR_LABEL_MAX_CHARS = 120
CALENDAR_DETAIL_MAX_CHARS = 600
TRIAL_INCIDENT_CAP = 60

SUMMONS_PATTERN = re.compile(r"summons|citation|writ", re.IGNORECASE)

DEFAULT_TRANSCRIPT = [
    TranscriptTurn(speaker="Clerk", text="The case is called; the parties are present."),
    TranscriptTurn(speaker="Judge", text="The hearing is open."),
]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def clone_run(run: Run) -> Run:
    """Deep copy a run, falling back to a JSON round-trip if copying fails."""
    try:
        return run.model_copy(deep=True)
    except (TypeError, copy.Error, RecursionError):
        return Run.model_validate_json(run.model_dump_json(by_alias=True))


def _push_audit(run: Run, action: str, title: str = "", detail: str = "", meta: Optional[dict] = None):
    entry = AuditEntry(id=new_id("log"), ts=now_iso(), action=action, title=title, detail=detail, meta=meta or {})
    run.state.audit_log = [entry, *run.state.audit_log][:AUDIT_LOG_CAP]


def _label(value) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _union(existing: list[str], extra: list[str]) -> list[str]:
    merged = list(existing)
    for item in extra:
        if item not in merged:
            merged.append(item)
    return merged


# ============================================================
# LIFECYCLE
# ============================================================

def create_new_run(case: Case, rng: Optional[Rng] = None) -> Run:
    """Start a run at the briefing step with one random event card as flavour."""
    event = pick(rng or random.random, case.events_deck)
    return Run(
        run_id=new_id("run"),
        case_id=case.case_id,
        case_meta=CaseSnapshot(
            case_id=case.case_id,
            title=case.title,
            domain=case.domain.value,
            level=case.level.value,
        ),
        started_at=now_iso(),
        event_card=event.model_copy() if event else None,
    )


def set_step(run: Run, step: Union[RunStep, str]) -> Run:
    next_run = clone_run(run)
    next_run.step = RunStep(step)
    return next_run


def finish_run(run: Run) -> Run:
    next_run = clone_run(run)
    next_run.finished_at = now_iso()
    next_run.step = RunStep.RESULT
    _push_audit(next_run, "RUN_FINISHED", title="Run finished")
    return next_run


def set_appeal(run: Run, appeal: AppealDecision) -> Run:
    next_run = clone_run(run)
    next_run.appeal = appeal.model_copy(deep=True)
    _push_audit(next_run, "APPEAL_DECIDED", title=f"Appeal: {appeal.decision.value}")
    return next_run


# ============================================================
# AUDIENCE
# ============================================================

def merge_audience_with_templates(case: Case, scene: Union[AudienceScene, dict, None]) -> AudienceScene:
    """
    Complete a partial audience scene: default the transcript to a short
    filler and synthesize objections from the case when none were supplied.
    """
    raw = scene.to_json_dict() if isinstance(scene, AudienceScene) else as_dict(scene)

    scene_meta = {
        "court": case.meta.court,
        "chamber": case.meta.chamber,
        "city": case.meta.city,
        "caseId": case.case_id,
        "hearingType": case.hearing_type,
        "date": now_iso()[:10],
    }
    scene_meta.update(as_dict(raw.get("sceneMeta")))

    transcript = []
    for turn in as_list(raw.get("transcript")) or as_list(raw.get("turns")):
        turn = as_dict(turn)
        text = as_text(turn.get("text"))
        if text:
            transcript.append(TranscriptTurn(speaker=as_text(turn.get("speaker")) or "Judge", text=text))
    if not transcript:
        transcript = [turn.model_copy() for turn in DEFAULT_TRANSCRIPT]

    objections = [
        Objection.from_loose(item, fallback_id=f"OBJ{index + 1}")
        for index, item in enumerate(as_list(raw.get("objections")))
        if isinstance(item, dict)
    ]
    if not objections:
        objections = [objection.model_copy(deep=True) for objection in case.objection_templates]

    return AudienceScene(scene_meta=scene_meta, transcript=transcript, objections=objections)


def set_audience_scene(run: Run, scene: AudienceScene) -> Run:
    next_run = clone_run(run)
    next_run.answers.audience.scene = scene.model_copy(deep=True)
    court = scene.scene_meta.get("court")
    chamber = scene.scene_meta.get("chamber")
    _push_audit(
        next_run,
        "AUDIENCE_SCENE_SET",
        title="Hearing scene set",
        detail=f"{court} - {chamber}" if court else "Hearing",
    )
    return next_run


def find_objection(run: Run, objection_id: str) -> Optional[Objection]:
    scene = run.answers.audience.scene
    if scene is None:
        return None
    for objection in scene.objections:
        if objection.id == objection_id:
            return objection
    return None


def micro_score(decision: str, best_choice: Optional[str]) -> int:
    if best_choice and decision == best_choice:
        return MICRO_SCORE_BEST
    if decision == Ruling.CLARIFY.value:
        return MICRO_SCORE_CLARIFY
    return MICRO_SCORE_OTHER


def apply_audience_decision(
    run: Run,
    objection_id: str,
    decision: str,
    reasoning: str = "",
    role: Optional[str] = None,
) -> Run:
    """
    Rule on an objection of the current scene.

    An unknown objection id still records the decision, with empty effects.
    """
    next_run = clone_run(run)
    role = _label(role or next_run.answers.role)
    decision = _label(decision)
    reasoning = str(reasoning or "")[:REASONING_MAX_CHARS]

    objection = find_objection(next_run, objection_id)
    if objection is not None:
        effects = objection.effects.model_copy(deep=True)
        best = objection.best_choice_by_role.get(role)
    else:
        effects = ObjectionEffects()
        best = None
    points = micro_score(decision, best)

    state = next_run.state
    state.audience_micro += points
    state.excluded_piece_ids = _union(state.excluded_piece_ids, effects.exclude_piece_ids)
    state.admitted_late_piece_ids = _union(state.admitted_late_piece_ids, effects.admit_late_piece_ids)
    state.risk_modifiers.appeal_risk_penalty += max(0, effects.risk.appeal_risk_penalty)
    state.risk_modifiers.due_process_bonus += max(0, effects.risk.due_process_bonus)

    record = DecisionRecord(
        objection_id=objection_id,
        decision=decision,
        reasoning=reasoning,
        timestamp=now_iso(),
        role=role,
        micro_score=points,
        effects=effects,
    )
    audience = next_run.answers.audience
    audience.decisions = [record, *audience.decisions][:DECISION_CAP]

    _push_audit(
        next_run,
        "AUDIENCE_DECISION",
        title=f"Objection {objection_id}: {decision}",
        detail=reasoning[:260] or "(no reasoning)",
        meta={"role": role, "microScore": points},
    )
    return next_run


# ============================================================
# INCIDENTS & CHRONOMETER
# ============================================================

def incident_points(incident_type: str) -> int:
    return INCIDENT_POINTS.get(str(incident_type or "").strip().lower(), DEFAULT_INCIDENT_POINTS)


def record_incident(
    run: Run,
    incident_type: str,
    title: str = "",
    detail: str = "",
    actor: Optional[str] = None,
) -> Run:
    """Record a procedural incident raised during the hearing."""
    next_run = clone_run(run)
    incident_type = str(incident_type or "incident").strip().lower()
    points = incident_points(incident_type)

    state = next_run.state
    state.audience_micro += points
    state.risk_modifiers.due_process_bonus += min(INCIDENT_BONUS_CAP, points)

    incident = Incident(
        id=new_id("inc"),
        ts=now_iso(),
        type=incident_type,
        title=title or f"Incident: {incident_type}",
        detail=str(detail or "")[:REASONING_MAX_CHARS],
        actor=actor or next_run.answers.role.value,
        points=points,
    )
    state.incidents = [incident, *state.incidents][:INCIDENT_CAP]

    _push_audit(
        next_run,
        "INCIDENT_RECORDED",
        title=incident.title,
        detail=incident.detail or "(no detail)",
        meta={"actor": incident.actor, "points": points},
    )
    return next_run


def start_chrono(run: Run) -> Run:
    next_run = clone_run(run)
    chrono = next_run.state.chrono
    chrono.running = True
    if not chrono.started_at:
        chrono.started_at = now_iso()
    _push_audit(next_run, "CHRONO_START", title="Chronometer started")
    return next_run


def stop_chrono(run: Run) -> Run:
    next_run = clone_run(run)
    next_run.state.chrono.running = False
    _push_audit(next_run, "CHRONO_STOP", title="Chronometer stopped")
    return next_run


def set_chrono_elapsed(run: Run, elapsed_ms: int) -> Run:
    next_run = clone_run(run)
    next_run.state.chrono.elapsed_ms = max(0, int(elapsed_ms))
    return next_run


# ============================================================
# SCORING
# ============================================================

def score_run(run: Run) -> ScoreReport:
    """
    Aggregate the run's axis scores.

    Qualification and procedure come from AI judging and are only clamped;
    the audience axis is derived from the micro-score and risk modifiers.
    """
    scores = run.scores
    qualification = clamp(scores.qualification, 0, 100)
    procedure = clamp(scores.procedure, 0, 100)

    micro = clamp(run.state.audience_micro, 0, MICRO_SCORE_CEILING)
    bonus = clamp(run.state.risk_modifiers.due_process_bonus, 0, MODIFIER_CEILING)
    penalty = clamp(run.state.risk_modifiers.appeal_risk_penalty, 0, MODIFIER_CEILING)
    audience = clamp(round_half_up(50 + micro / 2 + bonus - penalty), 0, 100)

    score_global = clamp(round_half_up((qualification + procedure + audience) / 3), 0, 100)

    flags = []
    if penalty >= HIGH_APPEAL_RISK:
        flags.append(Flag(level="warn", label="High appeal risk", detail=f"Appeal risk penalty at {penalty:g}/20"))

    debrief = [
        f"Global score: {score_global}/100 (qualification {qualification:g}, procedure {procedure:g}, "
        f"audience {audience})",
        f"Audience: {micro:g} micro-points, due-process bonus {bonus:g}, appeal risk {penalty:g}",
    ]

    return ScoreReport(
        score_global=score_global,
        scores=Scores(
            qualification=qualification,
            procedure=procedure,
            audience=audience,
            rights=clamp(scores.rights, 0, 100),
            motivation=clamp(scores.motivation, 0, 100),
        ),
        flags=flags,
        debrief=debrief,
    )


def apply_score_report(run: Run, report: ScoreReport) -> Run:
    next_run = clone_run(run)
    next_run.scores = report.scores.model_copy()
    next_run.score_global = report.score_global
    next_run.flags = [flag.model_copy() for flag in report.flags]
    next_run.debrief = list(report.debrief)
    return next_run


def apply_judging_scores(run: Run, scores: Mapping[str, float]) -> Run:
    """Store externally judged axis scores (qualification, procedure, rights, motivation)."""
    next_run = clone_run(run)
    for axis in ("qualification", "procedure", "rights", "motivation"):
        if axis in scores:
            setattr(next_run.scores, axis, clamp(float(scores[axis]), 0, 100))
    return next_run


# ============================================================
# PIECES STATUS
# ============================================================

def get_effective_pieces(run: Run, case: Case) -> list[EffectivePiece]:
    excluded = set(run.state.excluded_piece_ids)
    admitted_late = set(run.state.admitted_late_piece_ids)
    pieces = []
    for piece in case.pieces:
        if piece.id in excluded:
            status = PieceStatus.EXCLUDED
        elif piece.id in admitted_late:
            status = PieceStatus.LATE_ADMITTED
        else:
            status = PieceStatus.OK
        pieces.append(EffectivePiece(**piece.model_dump(), status=status))
    return pieces


def get_pieces_status_summary(run: Run, case: Case) -> PiecesSummary:
    pieces = get_effective_pieces(run, case)
    groups = {status: [p for p in pieces if p.status == status] for status in PieceStatus}
    return PiecesSummary(
        groups=groups,
        counts={status: len(items) for status, items in groups.items()},
        total=len(pieces),
    )


# ============================================================
# TRIAL TIMELINE
# ============================================================

def _journal(trial: Trial, entry_type: str, text: str) -> None:
    trial.journal.append(JournalEntry(ts=now_iso(), type=entry_type, text=text))


def _new_stage(template: TrialStageTemplate, order: int, status: StageStatus = StageStatus.PENDING) -> TrialStage:
    return TrialStage(
        id=template.stage_id,
        title=template.title,
        objective=template.objective,
        order=order,
        status=status,
        started_at=now_iso() if status == StageStatus.ACTIVE else None,
    )


def _ordered_stages(trial: Trial) -> list[TrialStage]:
    return sorted(trial.stages, key=lambda stage: stage.order)


def init_trial(run: Run, case: Optional[Case] = None, start_date: Optional[date] = None) -> Run:
    """
    Set up the multi-hearing trial of a run, then its procedural calendar.

    A run that already has a trial keeps its stages; stages missing from
    the catalog are appended as pending after the existing ones.
    """
    next_run = clone_run(run)
    trial = next_run.state.trial

    if trial is not None:
        existing = {stage.id for stage in trial.stages}
        max_order = max((stage.order for stage in trial.stages), default=0)
        for template in TRIAL_STAGES:
            if template.stage_id in existing:
                continue
            max_order += 1
            trial.stages.append(_new_stage(template, max_order))
            _journal(trial, "MIGRATE", f"Stage added: {template.stage_id}")
        return init_procedural_calendar(next_run, case, start_date)

    stages = [
        _new_stage(template, order, StageStatus.ACTIVE if order == 0 else StageStatus.PENDING)
        for order, template in enumerate(TRIAL_STAGES)
    ]
    trial = Trial(created_at=now_iso(), current_stage_id=stages[0].id, stages=stages)
    _journal(trial, "TRIAL_INIT", "Full trial initialized.")
    next_run.state.trial = trial
    _push_audit(
        next_run,
        "TRIAL_INIT",
        title="Full trial",
        detail=f"{case.title if case else 'Case'} - multi-hearing timeline initialized",
    )
    return init_procedural_calendar(next_run, case, start_date)


def get_trial_stage(run: Run, stage_id: str) -> Optional[TrialStage]:
    trial = run.state.trial
    if trial is None:
        return None
    for stage in trial.stages:
        if stage.id == stage_id:
            return stage
    return None


def get_current_trial_stage(run: Run) -> Optional[TrialStage]:
    trial = run.state.trial
    if trial is None or not trial.current_stage_id:
        return None
    return get_trial_stage(run, trial.current_stage_id)


def set_current_trial_stage(run: Run, stage_id: str) -> Run:
    """Make ``stage_id`` the only active stage; unknown ids leave the run unchanged."""
    next_run = clone_run(run)
    target = get_trial_stage(next_run, stage_id)
    if target is None:
        return next_run

    trial = next_run.state.trial
    for stage in trial.stages:
        if stage is target:
            if stage.status != StageStatus.DONE:
                stage.status = StageStatus.ACTIVE
            stage.started_at = stage.started_at or now_iso()
        elif stage.status == StageStatus.ACTIVE:
            stage.status = StageStatus.PENDING

    trial.current_stage_id = stage_id
    _journal(trial, "STAGE_SET", f"Active stage: {stage_id}")
    _push_audit(next_run, "TRIAL_STAGE_SET", title=f"Stage: {stage_id}", detail=target.title)
    return next_run


def attach_stage_audience_scene(run: Run, stage_id: str, scene: Optional[AudienceScene]) -> Run:
    next_run = clone_run(run)
    stage = get_trial_stage(next_run, stage_id)
    if stage is None:
        return next_run

    stage.audience_scene = scene.model_copy(deep=True) if scene is not None else None
    _journal(next_run.state.trial, "STAGE_AUDIENCE", f"Hearing scene set for {stage_id}")
    court = scene.scene_meta.get("court") if scene is not None else None
    _push_audit(
        next_run,
        "TRIAL_STAGE_AUDIENCE",
        title=f"Hearing scene - {stage.title}",
        detail=str(court) if court else "Hearing",
    )
    return next_run


def append_stage_minutes(run: Run, stage_id: str, text: str, by: Optional[str] = None) -> Run:
    """Add a line to a stage's minutes. Blank text is ignored."""
    next_run = clone_run(run)
    stage = get_trial_stage(next_run, stage_id)
    text = str(text or "")[:MINUTES_TEXT_MAX_CHARS].strip()
    if stage is None or not text:
        return next_run

    author = _label(by or next_run.answers.role or "Clerk")[:MINUTES_AUTHOR_MAX_CHARS]
    stage.minutes.append(MinuteEntry(id=new_id("pv"), ts=now_iso(), by=author, text=text))
    stage.minutes = stage.minutes[-MINUTES_CAP:]
    return next_run


def complete_stage(run: Run, stage_id: str, score: Optional[float] = None, note: Optional[str] = None) -> Run:
    """Close a stage and activate the next one by order, unless it is already done."""
    next_run = clone_run(run)
    stage = get_trial_stage(next_run, stage_id)
    if stage is None:
        return next_run

    trial = next_run.state.trial
    stage.status = StageStatus.DONE
    stage.finished_at = now_iso()
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        stage.score = float(score)
    if note:
        stage.notes = [*stage.notes, str(note)[:STAGE_NOTE_MAX_CHARS]][-STAGE_NOTES_CAP:]
    _journal(trial, "STAGE_DONE", f"Stage done: {stage_id}")

    ordered = _ordered_stages(trial)
    index = next(i for i, item in enumerate(ordered) if item.id == stage_id)
    following = ordered[index + 1] if index + 1 < len(ordered) else None
    if following is not None and following.status != StageStatus.DONE:
        trial.current_stage_id = following.id
        following.status = StageStatus.ACTIVE
        following.started_at = following.started_at or now_iso()

    _push_audit(
        next_run,
        "TRIAL_STAGE_DONE",
        title=f"Stage done - {stage.title}",
        detail=f"Next stage: {following.title}" if following is not None else "Trial over",
    )
    return next_run


def _empty_trial(stage_id: str = "") -> Trial:
    return Trial(created_at=now_iso(), current_stage_id=stage_id or TRIAL_STAGES[0].stage_id)


def init_procedural_calendar(run: Run, case: Optional[Case] = None, start_date: Optional[date] = None) -> Run:
    """
    Plan the default calendar (setting, case management, hearings,
    deliberation, judgment) from ``start_date``, today by default.

    A calendar that already has events is left as is.
    """
    next_run = clone_run(run)
    if next_run.state.trial is None:
        next_run.state.trial = _empty_trial()
    trial = next_run.state.trial
    calendar = trial.calendar

    if calendar.events:
        calendar.last_updated_at = now_iso()
        return next_run

    start = start_date or datetime.now(timezone.utc).date()
    court = case.meta.court if case else "Court"
    city = case.meta.city if case else "Kinshasa"
    for seed in DEFAULT_CALENDAR:
        calendar.events.append(CalendarEvent(
            id=new_id("cal"),
            ts=now_iso(),
            type=seed.type,
            date=(start + timedelta(days=seed.day)).isoformat(),
            label=seed.label,
            detail=seed.detail.format(court=court, city=city),
            stage_id=seed.stage_id,
        ))

    calendar.last_updated_at = now_iso()
    _journal(trial, "CAL_INIT", "Procedural calendar initialized.")
    _push_audit(next_run, "CAL_INIT", title="Procedural calendar", detail="Setting, case management, hearings planned")
    return next_run


def add_calendar_event(
    run: Run,
    event_type: str = "CONTINUANCE",
    date_value: Optional[str] = None,
    label: str = "",
    detail: str = "",
    stage_id: Optional[str] = None,
) -> Run:
    """
    Add an event to the procedural calendar of a run that has a trial.

    Continuances add one point of appeal risk.
    """
    next_run = clone_run(run)
    trial = next_run.state.trial
    if trial is None:
        return next_run

    event_type = str(event_type or "CONTINUANCE").strip().upper()[:24] or "CONTINUANCE"
    event_date = str(date_value or now_iso()[:10])[:20]
    label = str(label or event_type)[:CALENDAR_LABEL_MAX_CHARS]
    event = CalendarEvent(
        id=new_id("cal"),
        ts=now_iso(),
        type=event_type,
        date=event_date,
        label=label,
        detail=str(detail or "")[:CALENDAR_DETAIL_MAX_CHARS],
        stage_id=stage_id or None,
    )
    trial.calendar.events.append(event)
    trial.calendar.last_updated_at = now_iso()

    _journal(trial, "CAL_ADD", f"Event added: {event_type} ({event_date})")
    _push_audit(next_run, "CAL_ADD", title=f"Calendar: {event_type}", detail=f"{label} - {event_date}")

    if event_type in CONTINUANCE_EVENT_TYPES:
        next_run.state.risk_modifiers.appeal_risk_penalty += 1
    return next_run


def mark_calendar_event_done(run: Run, event_id: str) -> Run:
    next_run = clone_run(run)
    trial = next_run.state.trial
    if trial is None:
        return next_run
    for event in trial.calendar.events:
        if event.id == event_id:
            event.status = CalendarStatus.DONE
            trial.calendar.last_updated_at = now_iso()
            break
    return next_run


def generate_auto_incidents(case: Case, stage_id: str) -> list[IncidentSuggestion]:
    """Suggest the procedural incidents a party would typically raise at a stage."""
    stage_id = str(stage_id or "").upper()
    has_late = any(piece.is_late for piece in case.pieces)
    has_summons = any(SUMMONS_PATTERN.search(f"{piece.title} {piece.type}") for piece in case.pieces)

    suggestions = []
    seen = set()
    for rule in AUTO_INCIDENT_RULES:
        if rule.stages and stage_id not in rule.stages:
            continue
        if rule.domains and case.domain not in rule.domains:
            continue
        if rule.requires_late_piece and not has_late:
            continue
        if rule.requires_missing_summons and has_summons:
            continue
        key = (rule.type, rule.label)
        if key in seen:
            continue
        seen.add(key)
        suggestions.append(IncidentSuggestion(type=rule.type, label=rule.label, detail=rule.detail))
    return suggestions[:AUTO_INCIDENT_LIMIT]


def apply_auto_incidents(
    run: Run,
    case: Case,
    stage_id: str,
    mode: Union[IncidentMode, str] = IncidentMode.SUGGEST,
) -> Run:
    """
    List the suggested incidents of a stage on the trial.

    In APPLY mode each one is also recorded on the run, as the system.
    """
    mode = IncidentMode(str(_label(mode)).upper())
    suggestions = generate_auto_incidents(case, stage_id)
    next_run = clone_run(run)
    if not suggestions:
        return next_run
    if next_run.state.trial is None:
        next_run.state.trial = _empty_trial(stage_id)

    status = "RECORDED" if mode == IncidentMode.APPLY else "SUGGESTED"
    rows = [
        TrialIncident(
            id=new_id("inc"),
            ts=now_iso(),
            stage_id=str(stage_id or ""),
            status=status,
            **suggestion.model_dump(),
        )
        for suggestion in suggestions
    ]
    next_run.state.trial.incidents = [*next_run.state.trial.incidents, *rows][-TRIAL_INCIDENT_CAP:]

    if mode == IncidentMode.APPLY:
        for suggestion in suggestions:
            next_run = record_incident(
                next_run,
                suggestion.type,
                title=suggestion.label,
                detail=f"{suggestion.label}. {suggestion.detail}",
                actor="System",
            )
    return next_run
