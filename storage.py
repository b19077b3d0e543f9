"""
Persistence for Justice Lab: key-value backends, the case cache and the
run store (runs, aggregate stats and the active-run pointer).

Values are JSON blobs. Every read normalizes legacy shapes and rewrites
the stored value when normalization changed it.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from errors import StorageUnavailableError
from game_engine import new_id, now_iso
from schemas import (
    SKILL_AXES,
    AppealDecision,
    AudienceScene,
    CalendarEvent,
    Case,
    DecisionRecord,
    AuditEntry,
    DomainStats,
    EventCard,
    Flag,
    Incident,
    JournalEntry,
    MinuteEntry,
    RoleType,
    Run,
    RunStep,
    ScoreReport,
    SkillStats,
    StageStatus,
    Stats,
    Trial,
    TrialIncident,
    TrialStage,
    as_dict,
    as_list,
    as_number,
    as_text,
    as_text_list,
    camel_key,
)
from seeded_rng import clamp

logger = logging.getLogger(__name__)

KEY_RUNS = "justiceLabRuns"
KEY_STATS = "justiceLabStats"
KEY_ACTIVE_RUN_ID = "justiceLabActiveRunId"
KEY_CASE_CACHE = "justiceLabCaseCache"
WRITE_CHECK_KEY = "__justiceLabWriteCheck__"

MAX_RUNS = 60
MAX_CACHED_CASES = 80

# Python field names whose JSON key is not plain camelCase.
FIELD_ALIASES = {"audience_micro": "_audienceMicro"}


# ============================================================
# KEY-VALUE BACKENDS
# ============================================================

class KeyValueStore(ABC):
    """String values keyed by string."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class MemoryStore(KeyValueStore):
    """Session-only store; contents are lost when the process exits."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore(KeyValueStore):
    """One JSON file per key inside a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot read {key}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot delete {key}: {exc}") from exc


class FallbackStore(KeyValueStore):
    """Wraps a durable store and switches to memory after its first failure."""

    def __init__(self, primary: KeyValueStore):
        self.primary = primary
        self.memory = MemoryStore()
        self.degraded = False

    def _degrade(self, exc: StorageUnavailableError):
        logger.warning(f"Storage unavailable ({exc.message}); keeping data in memory for this session")
        self.degraded = True

    def get(self, key: str) -> Optional[str]:
        if not self.degraded:
            try:
                return self.primary.get(key)
            except StorageUnavailableError as exc:
                self._degrade(exc)
        return self.memory.get(key)

    def set(self, key: str, value: str) -> None:
        if not self.degraded:
            try:
                self.primary.set(key, value)
                return
            except StorageUnavailableError as exc:
                self._degrade(exc)
        self.memory.set(key, value)

    def delete(self, key: str) -> None:
        if not self.degraded:
            try:
                self.primary.delete(key)
                return
            except StorageUnavailableError as exc:
                self._degrade(exc)
        self.memory.delete(key)


def open_store(directory: Optional[Union[str, Path]] = None) -> KeyValueStore:
    """
    Pick a backend once: a file store when ``directory`` is given and a
    test write and delete succeed, otherwise an in-memory store.
    """
    if not directory:
        return MemoryStore()
    store = FileStore(directory)
    try:
        store.set(WRITE_CHECK_KEY, "1")
        store.delete(WRITE_CHECK_KEY)
    except StorageUnavailableError as exc:
        logger.warning(f"Storage write check failed ({exc.message}); using in-memory store")
        return MemoryStore()
    return FallbackStore(store)


def _read_json(store: KeyValueStore, key: str, fallback: Any) -> Any:
    raw = store.get(key)
    if raw is None:
        return fallback
    try:
        return json.loads(raw)
    except ValueError:
        logger.debug(f"Discarding unparseable value under {key}")
        return fallback


def _write_json(store: KeyValueStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value, ensure_ascii=False))


def parse_timestamp(value) -> float:
    """ISO timestamp to epoch seconds; anything unparseable sorts as 0."""
    text = as_text(value)
    if not text:
        return 0.0
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


# ============================================================
# NORMALIZATION
# ============================================================

def _valid_models(model: type[BaseModel], items) -> list:
    out = []
    for item in as_list(items):
        if not isinstance(item, dict):
            continue
        try:
            out.append(model.model_validate(item))
        except ValidationError as exc:
            logger.debug(f"Dropping malformed {model.__name__} ({exc.error_count()} errors)")
    return out


def _valid_model(model: type[BaseModel], item):
    models = _valid_models(model, [item])
    return models[0] if models else None


def _normalize_stage(raw: dict) -> dict:
    stage = dict(raw)
    # older runs kept the minutes under "pv"
    if "minutes" not in stage and "pv" in stage:
        stage["minutes"] = stage.pop("pv")
    stage["minutes"] = [entry.to_json_dict() for entry in _valid_models(MinuteEntry, stage.get("minutes"))]
    stage["notes"] = as_text_list(stage.get("notes"))
    if stage.get("score") is not None:
        stage["score"] = as_number(stage["score"])
    if stage.get("status") not in [s.value for s in StageStatus]:
        stage["status"] = StageStatus.PENDING
    scene = _valid_model(AudienceScene, stage.get("audienceScene"))
    stage["audienceScene"] = scene.to_json_dict() if scene is not None else None
    return stage


def normalize_trial(raw) -> Optional[Trial]:
    """Rebuild a run's trial timeline, dropping malformed stages, events and entries."""
    if not isinstance(raw, dict):
        return None
    calendar = as_dict(raw.get("calendar"))
    stages = [_normalize_stage(item) for item in as_list(raw.get("stages")) if isinstance(item, dict)]
    return Trial.model_validate({
        "version": as_text(raw.get("version")) or "V1",
        "createdAt": as_text(raw.get("createdAt")) or now_iso(),
        "currentStageId": as_text(raw.get("currentStageId")),
        "stages": _valid_models(TrialStage, stages),
        "calendar": {
            "version": int(as_number(calendar.get("version"))) or 1,
            "events": _valid_models(CalendarEvent, calendar.get("events")),
            "lastUpdatedAt": as_text(calendar.get("lastUpdatedAt")) or None,
        },
        "incidents": _valid_models(TrialIncident, raw.get("incidents")),
        "journal": _valid_models(JournalEntry, raw.get("journal")),
    })


def normalize_run(raw) -> Run:
    """Backfill every Run field from a possibly partial or legacy dict. Never raises."""
    raw = as_dict(raw)
    snapshot = as_dict(raw.get("caseMeta"))
    answers = as_dict(raw.get("answers"))
    audience = as_dict(answers.get("audience"))
    state = as_dict(raw.get("state"))
    risk = as_dict(state.get("riskModifiers"))
    chrono = as_dict(state.get("chrono"))
    scores = as_dict(raw.get("scores"))

    role = answers.get("role")
    step = raw.get("step")
    case_id = as_text(raw.get("caseId")) or as_text(snapshot.get("caseId"))

    return Run.model_validate({
        "runId": as_text(raw.get("runId")) or new_id("run"),
        "caseId": case_id,
        "caseMeta": {
            "caseId": as_text(snapshot.get("caseId")) or case_id,
            "title": as_text(snapshot.get("title")),
            "domain": as_text(snapshot.get("domain")),
            "level": as_text(snapshot.get("level")),
        },
        "startedAt": as_text(raw.get("startedAt")) or now_iso(),
        "finishedAt": as_text(raw.get("finishedAt")) or None,
        "step": step if step in [s.value for s in RunStep] else RunStep.BRIEFING,
        "eventCard": _valid_model(EventCard, raw.get("eventCard")),
        "answers": {
            "role": role if role in [r.value for r in RoleType] else RoleType.JUDGE,
            "qualification": as_text(answers.get("qualification")),
            "procedureChoice": as_text(answers.get("procedureChoice")) or None,
            "procedureJustification": as_text(answers.get("procedureJustification")),
            "audience": {
                "scene": _valid_model(AudienceScene, audience.get("scene")),
                "decisions": _valid_models(DecisionRecord, audience.get("decisions")),
            },
            "decisionMotivation": as_text(answers.get("decisionMotivation")),
            "decisionDispositif": as_text(answers.get("decisionDispositif")),
        },
        "state": {
            "excludedPieceIds": as_text_list(state.get("excludedPieceIds")),
            "admittedLatePieceIds": as_text_list(state.get("admittedLatePieceIds")),
            "_audienceMicro": max(0, as_number(state.get("_audienceMicro"))),
            "riskModifiers": {
                "appealRiskPenalty": max(0, as_number(risk.get("appealRiskPenalty"))),
                "dueProcessBonus": max(0, as_number(risk.get("dueProcessBonus"))),
            },
            "auditLog": _valid_models(AuditEntry, state.get("auditLog")),
            "chrono": {
                "running": chrono.get("running") is True,
                "startedAt": as_text(chrono.get("startedAt")) or None,
                "elapsedMs": max(0, int(as_number(chrono.get("elapsedMs")))),
            },
            "incidents": _valid_models(Incident, state.get("incidents")),
            "trial": normalize_trial(state.get("trial")),
        },
        "scores": {
            "qualification": as_number(scores.get("qualification")),
            "procedure": as_number(scores.get("procedure")),
            "audience": as_number(scores.get("audience")),
            # legacy runs stored the rights axis as "droits"
            "rights": as_number(scores.get("rights", scores.get("droits"))),
            "motivation": as_number(scores.get("motivation")),
        },
        "scoreGlobal": as_number(raw.get("scoreGlobal")),
        "flags": _valid_models(Flag, raw.get("flags")),
        "debrief": as_text_list(raw.get("debrief")),
        "appeal": _valid_model(AppealDecision, raw.get("appeal")),
        "statsCounted": raw.get("statsCounted") is True,
    })


def _run_sort_key(run: Run) -> float:
    return parse_timestamp(run.finished_at or run.started_at)


def normalize_runs(runs, limit: int = MAX_RUNS) -> list[Run]:
    normalized = [normalize_run(item) for item in as_list(runs) if isinstance(item, dict)]
    normalized.sort(key=_run_sort_key, reverse=True)
    return normalized[:limit]


def normalize_stats(raw) -> Stats:
    raw = as_dict(raw)
    by_domain = {}
    for domain, entry in as_dict(raw.get("byDomain")).items():
        entry = as_dict(entry)
        by_domain[str(domain)] = DomainStats(
            runs=max(0, int(as_number(entry.get("runs")))),
            avg=as_number(entry.get("avg")),
            best=as_number(entry.get("best")),
        )
    raw_skills = as_dict(raw.get("skills"))
    skills = {}
    for axis in SKILL_AXES:
        entry = as_dict(raw_skills.get(axis, raw_skills.get("droits") if axis == "rights" else None))
        skills[axis] = SkillStats(avg=as_number(entry.get("avg")), n=max(0, int(as_number(entry.get("n")))))
    return Stats(
        total_runs=max(0, int(as_number(raw.get("totalRuns")))),
        avg_score=as_number(raw.get("avgScore")),
        best_score=as_number(raw.get("bestScore")),
        last_run_at=as_text(raw.get("lastRunAt")) or None,
        by_domain=by_domain,
        skills=skills,
    )


def _json_value(value):
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, dict):
        return to_json_keys(value)
    if isinstance(value, list):
        return [_json_value(item) for item in value]
    return value


def _json_key(key):
    if not isinstance(key, str):
        return key
    return FIELD_ALIASES.get(key, camel_key(key))


def to_json_keys(patch: dict) -> dict:
    """Accept a patch keyed by Python names or JSON names, at any depth; return JSON names."""
    return {_json_key(key): _json_value(value) for key, value in as_dict(patch).items()}


def merge_nested(base: dict, changes: dict) -> dict:
    """Merge ``changes`` onto ``base``; nested objects merge key by key, lists and scalars replace."""
    merged = dict(base)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_nested(merged[key], value)
        else:
            merged[key] = value
    return merged


def _run_dict(run: Union[Run, dict]) -> dict:
    return run.to_json_dict() if isinstance(run, Run) else to_json_keys(run)


# ============================================================
# CASE CACHE
# ============================================================

class CaseCache:
    """Generated cases keyed by caseId, oldest evicted first past the cap."""

    def __init__(self, store: KeyValueStore, max_entries: int = MAX_CACHED_CASES):
        self.store = store
        self.max_entries = max_entries

    def _load(self) -> dict:
        return as_dict(_read_json(self.store, KEY_CASE_CACHE, {}))

    def save(self, case: Case) -> Case:
        cache = self._load()
        cache[case.case_id] = case.to_json_dict()
        overflow = len(cache) - self.max_entries
        if overflow > 0:
            candidates = sorted(
                (key for key in cache if key != case.case_id),
                key=lambda key: parse_timestamp(as_dict(as_dict(cache[key]).get("meta")).get("generatedAt")),
            )
            for key in candidates[:overflow]:
                del cache[key]
        _write_json(self.store, KEY_CASE_CACHE, cache)
        return case

    def get(self, case_id: str) -> Optional[Case]:
        raw = self._load().get(case_id)
        if raw is None:
            return None
        try:
            return Case.model_validate(raw)
        except ValidationError as exc:
            logger.debug(f"Cached case {case_id} is malformed ({exc.error_count()} errors)")
            return None

    def all(self) -> list[Case]:
        return _valid_models(Case, list(self._load().values()))

    def ids(self) -> set[str]:
        return set(self._load())

    def list_generated(self, limit: int = 24) -> list[Case]:
        """Cached cases that are not part of the base catalog, newest first."""
        cases = [case for case in self.all() if case.meta.source != "base"]
        cases.sort(key=lambda case: parse_timestamp(case.meta.generated_at), reverse=True)
        return cases[:max(0, limit)]

    def clear(self) -> None:
        self.store.delete(KEY_CASE_CACHE)


# ============================================================
# RUN STORE
# ============================================================

class RunStore:
    """Runs (newest first), aggregate stats and the active-run pointer."""

    def __init__(self, store: KeyValueStore, max_runs: int = MAX_RUNS):
        self.store = store
        self.max_runs = max_runs

    # --- runs -------------------------------------------------

    def read_runs(self) -> list[Run]:
        stored = _read_json(self.store, KEY_RUNS, [])
        runs = normalize_runs(stored, self.max_runs)
        dumped = [run.to_json_dict() for run in runs]
        if dumped != stored:
            _write_json(self.store, KEY_RUNS, dumped)
        return runs

    def write_runs(self, runs: list[Union[Run, dict]]) -> list[Run]:
        normalized = normalize_runs([_run_dict(run) for run in runs], self.max_runs)
        _write_json(self.store, KEY_RUNS, [run.to_json_dict() for run in normalized])
        return normalized

    def get_run(self, run_id: str) -> Optional[Run]:
        for run in self.read_runs():
            if run.run_id == run_id:
                return run
        return None

    def add_run(self, run: Union[Run, dict]) -> Run:
        added = normalize_run(_run_dict(run))
        self.write_runs([added, *self.read_runs()])
        return added

    def update_run_by_id(self, run_id: str, patch: dict) -> Optional[Run]:
        runs = self.read_runs()
        updated = None
        for index, run in enumerate(runs):
            if run.run_id == run_id:
                updated = normalize_run({**run.to_json_dict(), **to_json_keys(patch)})
                runs[index] = updated
                break
        if updated is None:
            return None
        self.write_runs(runs)
        return updated

    def upsert_run(self, run: Union[Run, dict]) -> Run:
        incoming = normalize_run(_run_dict(run))
        runs = self.read_runs()
        for index, existing in enumerate(runs):
            if existing.run_id == incoming.run_id:
                runs[index] = incoming
                break
        else:
            runs.insert(0, incoming)
        self.write_runs(runs)
        return incoming

    def delete_run(self, run_id: str) -> None:
        self.write_runs([run for run in self.read_runs() if run.run_id != run_id])
        if self.get_active_run_id() == run_id:
            self.clear_active_run_id()

    def clear_all_runs(self) -> None:
        self.store.delete(KEY_RUNS)
        self.store.delete(KEY_STATS)
        self.clear_active_run_id()

    def save_score(self, run_id: str, report: ScoreReport) -> Optional[Run]:
        return self.update_run_by_id(run_id, {
            "scores": report.scores,
            "score_global": report.score_global,
            "flags": report.flags,
            "debrief": report.debrief,
        })

    # --- active run -------------------------------------------

    def set_active_run_id(self, run_id: str) -> None:
        self.store.set(KEY_ACTIVE_RUN_ID, str(run_id))

    def get_active_run_id(self) -> Optional[str]:
        return self.store.get(KEY_ACTIVE_RUN_ID) or None

    def clear_active_run_id(self) -> None:
        self.store.delete(KEY_ACTIVE_RUN_ID)

    def get_active_run(self) -> Optional[Run]:
        run_id = self.get_active_run_id()
        return self.get_run(run_id) if run_id else None

    def ensure_active_run_valid(self) -> Optional[Run]:
        """Return the active run, clearing the pointer if it no longer resolves."""
        run_id = self.get_active_run_id()
        if not run_id:
            return None
        run = self.get_run(run_id)
        if run is None:
            self.clear_active_run_id()
        return run

    def upsert_and_set_active(self, run: Union[Run, dict]) -> Run:
        saved = self.upsert_run(run)
        self.set_active_run_id(saved.run_id)
        return saved

    def patch_active_run(self, patch: dict) -> Optional[Run]:
        """
        Merge ``patch`` onto the active run. The answers, state and scores
        sub-objects, and the objects nested in them, are merged key by key.
        """
        active = self.ensure_active_run_valid()
        if active is None:
            return None
        base = active.to_json_dict()
        changes = to_json_keys(patch)
        for section in ("answers", "state", "scores"):
            if isinstance(changes.get(section), dict):
                changes[section] = merge_nested(base[section], changes[section])
        return self.upsert_run({**base, **changes})

    # --- stats ------------------------------------------------

    def read_stats(self) -> Stats:
        stored = _read_json(self.store, KEY_STATS, {})
        stats = normalize_stats(stored)
        dumped = stats.to_json_dict()
        if dumped != stored:
            _write_json(self.store, KEY_STATS, dumped)
        return stats

    def write_stats(self, stats: Stats) -> Stats:
        _write_json(self.store, KEY_STATS, stats.to_json_dict())
        return stats

    def update_global_stats(self, run: Run) -> Stats:
        """
        Fold one finished run into the running averages.

        A run is counted once: the persisted copy is marked statsCounted and
        later calls for the same run leave the stats untouched.
        """
        stored = self.get_run(run.run_id)
        if run.stats_counted or (stored is not None and stored.stats_counted):
            logger.info(f"Run {run.run_id} already counted in stats; skipping")
            return self.read_stats()

        stats = self.read_stats()
        score = clamp(run.score_global, 0, 100)
        n = stats.total_runs + 1

        domain = run.case_meta.domain or "Unknown"
        current = stats.by_domain.get(domain, DomainStats())
        domain_runs = current.runs + 1
        by_domain = dict(stats.by_domain)
        by_domain[domain] = DomainStats(
            runs=domain_runs,
            avg=(current.avg * (domain_runs - 1) + score) / domain_runs,
            best=max(current.best, score),
        )

        skills = dict(stats.skills)
        for axis in SKILL_AXES:
            value = clamp(getattr(run.scores, axis), 0, 100)
            skill = skills.get(axis, SkillStats())
            count = skill.n + 1
            skills[axis] = SkillStats(avg=(skill.avg * (count - 1) + value) / count, n=count)

        updated = Stats(
            total_runs=n,
            avg_score=(stats.avg_score * (n - 1) + score) / n,
            best_score=max(stats.best_score, score),
            last_run_at=run.finished_at or now_iso(),
            by_domain=by_domain,
            skills=skills,
        )
        self.write_stats(updated)
        if stored is not None:
            self.update_run_by_id(run.run_id, {"stats_counted": True})
        return updated
