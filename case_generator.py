"""
Case Generator for Justice Lab

Builds simulated dossiers from the template catalog. The local builder is
pure and deterministic for a given (template, seed, level); the AI paths
ask the backend for a case and fall back to the local builder on any
failure. Hydration coerces whatever the backend returns into a Case.
"""

import logging
import math
import time
import unicodedata
import uuid
from typing import Collection, Optional, Union

from agents import AgentManager
from case_data import (
    AUDIENCE_CHECKLIST,
    CITIES,
    COMMON_OBJECTIVES,
    COMMON_PITFALLS,
    DEFAULT_CITY,
    DOMAIN_KEYWORDS,
    DOMAIN_OBJECTIVES,
    FALLBACK_DOMAIN,
    GENERIC_EVENTS_DECK,
    GENERIC_LEGAL_ISSUES,
    GIVEN_NAMES,
    STAKE_AMOUNTS,
    STAKE_MULTIPLIERS,
    SURNAMES,
    TEMPLATE_BY_DOMAIN,
    TITLE_KINDS,
    TITLE_NUMERALS,
    get_court_info,
    get_template,
)
from config import Settings, get_settings
from errors import AIServiceError
from game_engine import now_iso
from schemas import (
    Case,
    CaseMeta,
    CaseTemplate,
    Domain,
    EventCard,
    Level,
    Objection,
    ObjectionEffects,
    Party,
    PartySlot,
    Pedagogy,
    Piece,
    PieceSeed,
    RiskDelta,
    as_dict,
    as_list,
    as_number,
    as_text,
    as_text_list,
    best_choice_for,
)
from seeded_rng import (
    Rng,
    clamp,
    domain_tag,
    make_case_id,
    normalize_seed,
    pick,
    pick_n,
    rng_from_seed,
    round_half_up,
    short_hash,
)
from storage import CaseCache

logger = logging.getLogger(__name__)

PIECES_PER_CASE = 6
LEGAL_ISSUES_PER_CASE = 3
EVENTS_PER_CASE = 3
MIN_OBJECTIONS = 2
MAX_OBJECTIONS = 5

LATE_PROBABILITY = 0.18
LOW_RELIABILITY = 65
FORCED_RELIABILITY = 60

MAX_HYDRATED_PIECES = 10
MAX_HYDRATED_ISSUES = 8
MAX_HYDRATED_EVENTS = 8
MAX_HYDRATED_OBJECTIONS = 12
MAX_UNIQUE_ID_ATTEMPTS = 12

# (template, level, hint) for the starter catalog; the hint only varies the seed.
BASE_CASES = [
    ("TPL_PENAL_DETENTION", Level.BEGINNER, "Simple theft and a contested arrest record"),
    ("TPL_PENAL_DETENTION", Level.ADVANCED, "Nullity of an act and a reinforced adversarial debate"),
    ("TPL_LAND_TITLE_CUSTOM", Level.INTERMEDIATE, "Double sale and competing titles"),
    ("TPL_LAND_TITLE_CUSTOM", Level.BEGINNER, "Peaceful occupation, custom versus deed"),
    ("TPL_LABOR_DISMISSAL", Level.BEGINNER, "Dismissal without procedure and severance"),
    ("TPL_LABOR_DISMISSAL", Level.ADVANCED, "Overtime, bonuses and the burden of proof"),
    ("TPL_OHADA_PAYMENT_ORDER", Level.INTERMEDIATE, "Late opposition and OHADA time limits"),
    ("TPL_OHADA_PAYMENT_ORDER", Level.ADVANCED, "Set-off and a quality expert report"),
    ("TPL_CONSTITUTIONAL_FUNDAMENTAL_RIGHTS", Level.BEGINNER, "Ban on public meetings and legal basis"),
    ("TPL_CONSTITUTIONAL_FUNDAMENTAL_RIGHTS", Level.ADVANCED, "Structured proportionality review"),
    ("TPL_ADMIN_PERMIT_SANCTION", Level.BEGINNER, "Trading permit withdrawn without reasons"),
    ("TPL_ADMIN_PERMIT_SANCTION", Level.INTERMEDIATE, "Sanction without a hearing"),
    ("TPL_FAMILY_CUSTODY_SUPPORT", Level.BEGINNER, "Custody, visiting rights and tensions"),
    ("TPL_FAMILY_CUSTODY_SUPPORT", Level.INTERMEDIATE, "Maintenance and contested income"),
    ("TPL_MILITARY_INSUBORDINATION", Level.INTERMEDIATE, "Refused transfer order"),
    ("TPL_MILITARY_INSUBORDINATION", Level.ADVANCED, "Civilian employee and military jurisdiction"),
]


# ============================================================
# DOMAIN & LEVEL LOOKUP
# ============================================================

def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def _first_text(*values) -> str:
    for value in values:
        if isinstance(value, Domain) or isinstance(value, Level):
            return value.value
        text = as_text(value)
        if text:
            return text
    return ""


def infer_domain_from_prompt(prompt: str) -> Domain:
    """Match free text against the domain keyword table."""
    text = _fold(as_text(prompt))
    if not text:
        return FALLBACK_DOMAIN
    for domain, keywords in DOMAIN_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return domain
    return FALLBACK_DOMAIN


def normalize_domain(label) -> Domain:
    if isinstance(label, Domain):
        return label
    text = _fold(as_text(label))
    for domain in Domain:
        if text == domain.value.lower():
            return domain
    return infer_domain_from_prompt(text)


def template_id_for_domain(label) -> str:
    return TEMPLATE_BY_DOMAIN[normalize_domain(label)]


def normalize_level(value) -> Optional[Level]:
    if isinstance(value, Level):
        return value
    text = _fold(as_text(value))
    if not text:
        return None
    if text.startswith(("beg", "debut", "novice")):
        return Level.BEGINNER
    if text.startswith("inter"):
        return Level.INTERMEDIATE
    if text.startswith(("adv", "avance", "expert")):
        return Level.ADVANCED
    return None


# ============================================================
# PEDAGOGY
# ============================================================

def build_pedagogy(domain, level) -> Pedagogy:
    """Universal objectives plus up to three for the domain. No randomness."""
    domain = normalize_domain(domain)
    level = normalize_level(level) or Level.INTERMEDIATE
    return Pedagogy(
        level=level.value,
        objectives=COMMON_OBJECTIVES + DOMAIN_OBJECTIVES.get(domain, [])[:3],
        common_pitfalls=list(COMMON_PITFALLS),
        audience_checklist=list(AUDIENCE_CHECKLIST),
    )


# ============================================================
# LOCAL (DETERMINISTIC) BUILDER
# ============================================================

def compose_stake(rng: Rng) -> str:
    amount = pick(rng, STAKE_AMOUNTS) or 600
    multiplier = pick(rng, STAKE_MULTIPLIERS) or 1
    return f"{amount * multiplier} USD"


def build_parties(rng: Rng, slots: list[PartySlot]) -> dict[str, Party]:
    parties = {}
    for slot in slots:
        role = pick(rng, slot.labels) or slot.key.replace("_", " ").title()
        if slot.names:
            name = pick(rng, slot.names)
        else:
            name = f"{pick(rng, GIVEN_NAMES)} {pick(rng, SURNAMES)}"
        parties[slot.key] = Party(name=name, role=role)
    return parties


def ensure_contestable(pieces: list[Piece]) -> list[Piece]:
    """At least one late piece and one piece at or below the reliability threshold."""
    if pieces:
        if not any(piece.is_late for piece in pieces):
            pieces[-1].is_late = True
        if not any(piece.reliability <= LOW_RELIABILITY for piece in pieces):
            pieces[0].reliability = FORCED_RELIABILITY
    return pieces


def build_pieces(rng: Rng, seeds: list[PieceSeed], count: int = PIECES_PER_CASE) -> list[Piece]:
    pieces = []
    for index, seed in enumerate(pick_n(rng, seeds, count)):
        piece_id = f"P{index + 1}"
        title = pick(rng, seed.titles) or seed.type
        content = f"{pick(rng, seed.contents) or 'Content'} (ref. {piece_id})"
        reliability = clamp(round_half_up(55 + rng() * 45), 0, 100)
        is_late = rng() < LATE_PROBABILITY
        pieces.append(Piece(
            id=piece_id,
            title=title,
            type=seed.type,
            content=content,
            is_late=is_late,
            reliability=reliability,
        ))
    return ensure_contestable(pieces)


def build_objections(rng: Rng, template: CaseTemplate, pieces: list[Piece]) -> list[Objection]:
    """Draw 2 to 5 objections and point each at one unreliable and one late piece."""
    count = clamp(math.floor(MIN_OBJECTIONS + rng() * 3), MIN_OBJECTIONS, MAX_OBJECTIONS)
    tag = domain_tag(template.template_id)
    unreliable = [piece for piece in pieces if piece.reliability <= LOW_RELIABILITY]
    late = [piece for piece in pieces if piece.is_late]

    objections = []
    for index, seed in enumerate(pick_n(rng, template.objections, count)):
        excluded = pick(rng, unreliable)
        admitted = pick(rng, late)
        objections.append(Objection(
            id=f"{tag}_OBJ_{index + 1}",
            by=seed.by,
            title=seed.title,
            statement=seed.statement,
            best_choice_by_role=best_choice_for(seed.by),
            effects=ObjectionEffects(
                exclude_piece_ids=[excluded.id] if excluded else [],
                admit_late_piece_ids=[admitted.id] if admitted else [],
                risk=RiskDelta(
                    appeal_risk_penalty=seed.appeal_risk_penalty,
                    due_process_bonus=seed.due_process_bonus,
                ),
            ),
        ))
    return objections


def build_case(
    template_id: str,
    seed=None,
    level=None,
    prompt: Optional[str] = None,
    source: str = "generated",
) -> Case:
    """
    Build a case from a template. Identical (template_id, seed, level)
    always produce the same case apart from ``meta.generated_at``.
    Unknown template ids resolve to the first template.
    """
    template = get_template(template_id)
    seed_norm = normalize_seed(seed)
    rng = rng_from_seed(f"{template.template_id}:{seed_norm}")

    chosen_level = normalize_level(level) or pick(rng, template.levels) or Level.INTERMEDIATE
    parties = build_parties(rng, template.parties)
    facts = pick(rng, template.facts) or ""
    legal_issues = pick_n(rng, template.legal_issues, LEGAL_ISSUES_PER_CASE)
    pieces = build_pieces(rng, template.pieces)
    events = [
        EventCard(id=f"E{index + 1}", title=event.title, impact=event.impact)
        for index, event in enumerate(pick_n(rng, template.events, EVENTS_PER_CASE))
    ]
    objections = build_objections(rng, template, pieces)

    city = pick(rng, CITIES) or DEFAULT_CITY
    court = get_court_info(template.domain)
    title = f"{template.base_title} ({pick(rng, TITLE_KINDS)} {pick(rng, TITLE_NUMERALS)})"
    stake = compose_stake(rng)

    prompt_text = as_text(prompt)
    if prompt_text:
        summary = f"{prompt_text}\n\n(Simulated dossier. Indicative stake: {stake}; city: {city}.)"
    else:
        summary = f"{facts}\n\nIndicative stake: {stake}; city: {city}."

    return Case(
        case_id=make_case_id(template.template_id, seed_norm),
        domain=template.domain,
        level=chosen_level,
        title=title,
        summary=summary,
        jurisdiction=court.court,
        hearing_type=court.hearing_type,
        parties=parties,
        legal_issues=legal_issues,
        pieces=pieces,
        events_deck=events,
        objection_templates=objections,
        pedagogy=build_pedagogy(template.domain, chosen_level),
        meta=CaseMeta(
            template_id=template.template_id,
            seed=seed_norm,
            city=city,
            court=court.court,
            chamber=court.chamber,
            generated_at=now_iso(),
            source=source,
            user_prompt=prompt_text,
        ),
    )


# ============================================================
# HYDRATION
# ============================================================

def _as_flag(value) -> bool:
    if value is True:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 1
    return isinstance(value, str) and value.strip().lower() in ("true", "yes", "1")


def sanitize_pieces(raw_pieces, rng: Rng) -> list[Piece]:
    pieces = []
    for index, item in enumerate(as_list(raw_pieces)[:MAX_HYDRATED_PIECES]):
        item = as_dict(item)
        reliability = as_number(item.get("reliability"), default=None)
        if reliability is None:
            reliability = 55 + rng() * 45
        pieces.append(Piece(
            id=as_text(item.get("id")) or f"P{index + 1}",
            title=as_text(item.get("title")) or as_text(item.get("titre")) or f"Piece {index + 1}",
            type=as_text(item.get("type")) or as_text(item.get("kind")) or "Piece",
            content=as_text(item.get("content")),
            is_late=_as_flag(item.get("isLate")) or _as_flag(item.get("late")),
            reliability=clamp(round_half_up(reliability), 0, 100),
        ))
    return ensure_contestable(pieces)


def hydrate_parties(raw_parties) -> dict[str, Party]:
    parties = {}
    for key, value in as_dict(raw_parties).items():
        label = str(key).replace("_", " ").title()
        if isinstance(value, dict):
            name = as_text(value.get("name")) or as_text(value.get("nom"))
            role = as_text(value.get("role")) or as_text(value.get("statut")) or label
        else:
            name, role = as_text(value), label
        if name:
            parties[str(key)] = Party(name=name, role=role)
    if not parties:
        parties = {
            "plaintiff": Party(name="Plaintiff", role="Plaintiff"),
            "defendant": Party(name="Defendant", role="Defendant"),
        }
    return parties


def hydrate_events(raw_events) -> list[EventCard]:
    events = []
    for index, item in enumerate(as_list(raw_events)[:MAX_HYDRATED_EVENTS]):
        item = as_dict(item)
        title = as_text(item.get("title"))
        if title:
            events.append(EventCard(
                id=as_text(item.get("id")) or f"E{index + 1}",
                title=title,
                impact=as_text(item.get("impact")),
            ))
    return events or [event.model_copy() for event in GENERIC_EVENTS_DECK]


def hydrate_pedagogy(raw_pedagogy, domain: Domain, level: Level) -> Pedagogy:
    raw = as_dict(raw_pedagogy)
    objectives = as_text_list(raw.get("objectives"))
    if not objectives:
        return build_pedagogy(domain, level)
    return Pedagogy(
        level=as_text(raw.get("level")) or level.value,
        objectives=objectives,
        common_pitfalls=as_text_list(raw.get("commonPitfalls")) or list(COMMON_PITFALLS),
        audience_checklist=as_text_list(raw.get("audienceChecklist")) or list(AUDIENCE_CHECKLIST),
    )


def unique_seed_and_id(template_id: str, seed_norm: str, taken_ids: Collection[str]) -> tuple[str, str]:
    """Derive "<seed>-u<n>" seeds until the case id is free, giving up after a few attempts."""
    candidate_seed = seed_norm
    case_id = make_case_id(template_id, candidate_seed)
    attempt = 0
    while case_id in taken_ids and attempt < MAX_UNIQUE_ID_ATTEMPTS:
        attempt += 1
        candidate_seed = f"{seed_norm}-u{attempt}"
        case_id = make_case_id(template_id, candidate_seed)
    return candidate_seed, case_id


def hydrate_case(raw, domain=None, level=None, seed=None, taken_ids: Collection[str] = ()) -> Case:
    """
    Coerce a loosely typed case payload into a Case.

    Total: any input, including non-dicts and wrong field types, yields a
    fully populated Case with gaps filled the way the local builder would.
    A case id found in ``taken_ids`` is replaced by the id of a re-seeded
    case, so a payload never overwrites a stored case.
    """
    raw = as_dict(raw)
    meta = as_dict(raw.get("meta"))

    chosen_domain = normalize_domain(_first_text(raw.get("domain"), raw.get("domaine"), domain))
    chosen_level = (
        normalize_level(_first_text(raw.get("level"), raw.get("niveau")))
        or normalize_level(level)
        or Level.INTERMEDIATE
    )
    seed_norm = normalize_seed(_first_text(meta.get("seed"), raw.get("seed"), seed) or None)
    rng = rng_from_seed(f"HYDRATE:{chosen_domain.value}:{seed_norm}")

    domain_template_id = TEMPLATE_BY_DOMAIN[chosen_domain]
    court = get_court_info(chosen_domain)
    city = _first_text(meta.get("city"), raw.get("city")) or pick(rng, CITIES) or DEFAULT_CITY

    pieces = sanitize_pieces(raw.get("pieces"), rng)
    tag = domain_tag(domain_template_id)
    objections = [
        Objection.from_loose(item, fallback_id=f"{tag}_OBJ_{index + 1}")
        for index, item in enumerate(as_list(raw.get("objectionTemplates"))[:MAX_HYDRATED_OBJECTIONS])
        if isinstance(item, dict)
    ]
    if not objections:
        objections = build_objections(rng, get_template(domain_template_id), pieces)

    case_id = _first_text(raw.get("caseId"), raw.get("id")) or make_case_id(domain_template_id, seed_norm)
    if case_id in taken_ids:
        seed_norm, case_id = unique_seed_and_id(domain_template_id, seed_norm, taken_ids)

    return Case(
        case_id=case_id,
        domain=chosen_domain,
        level=chosen_level,
        title=_first_text(raw.get("title"), raw.get("titre")) or f"Simulated dossier: {chosen_domain.value}",
        summary=_first_text(raw.get("summary"), raw.get("resume")),
        jurisdiction=_first_text(raw.get("jurisdiction")) or court.court,
        hearing_type=_first_text(raw.get("hearingType")) or court.hearing_type,
        parties=hydrate_parties(raw.get("parties")),
        legal_issues=(
            as_text_list(raw.get("legalIssues"))[:MAX_HYDRATED_ISSUES]
            or pick_n(rng, GENERIC_LEGAL_ISSUES, LEGAL_ISSUES_PER_CASE)
        ),
        pieces=pieces,
        events_deck=hydrate_events(raw.get("eventsDeck")),
        objection_templates=objections,
        pedagogy=hydrate_pedagogy(raw.get("pedagogy"), chosen_domain, chosen_level),
        meta=CaseMeta(
            template_id=_first_text(meta.get("templateId"), raw.get("templateId")) or domain_template_id,
            seed=seed_norm,
            city=city,
            court=_first_text(meta.get("court")) or court.court,
            chamber=_first_text(meta.get("chamber")) or court.chamber,
            generated_at=_first_text(meta.get("generatedAt")) or now_iso(),
            source=_first_text(meta.get("source"), raw.get("source")) or "ai",
            origin_domain=chosen_domain.value,
            user_prompt=_first_text(meta.get("userPrompt")),
            filename=_first_text(meta.get("filename")) or None,
            excerpt=_first_text(meta.get("excerpt")) or None,
        ),
    )


# ============================================================
# GENERATOR SERVICE
# ============================================================

class CaseGenerator:
    """Produces cases (locally or through the AI backend) and caches every result."""

    def __init__(
        self,
        cache: CaseCache,
        agents: Optional[AgentManager] = None,
        settings: Optional[Settings] = None,
    ):
        self.cache = cache
        self.agents = agents
        self.settings = settings or get_settings()

    def generate_case(self, template_id: str, seed=None, level=None, prompt=None, source="generated") -> Case:
        return self.cache.save(build_case(template_id, seed, level, prompt=prompt, source=source))

    def hydrate_case_data(self, raw, domain=None, level=None, seed=None) -> Case:
        case = hydrate_case(raw, domain=domain, level=level, seed=seed, taken_ids=self.cache.ids())
        return self.cache.save(case)

    async def generate_case_hybrid(
        self,
        template_id: str,
        seed=None,
        level=None,
        ai: bool = False,
        timeout: Optional[float] = None,
    ) -> Case:
        """Ask the backend for a case; any failure returns the local case for the same inputs."""
        if not ai:
            return self.generate_case(template_id, seed, level)

        template = get_template(template_id)
        seed_norm = normalize_seed(seed)
        chosen_level = normalize_level(level)
        if self.agents is None:
            logger.warning("AI case generation requested without a backend; using local case")
            return self.generate_case(template.template_id, seed_norm, level)

        payload = {
            "mode": "enrich",
            "templateId": template.template_id,
            "seed": seed_norm,
            "level": chosen_level.value if chosen_level else None,
            "lang": self.settings.lang,
        }
        try:
            raw = await self.agents.generate_case(payload, timeout=timeout or self.settings.case_timeout)
        except AIServiceError as exc:
            logger.warning(f"AI case generation failed ({exc.message}); using local case for {template.template_id}")
            return self.generate_case(template.template_id, seed_norm, level)

        case = self.hydrate_case_data(raw, domain=template.domain, level=chosen_level, seed=seed_norm)
        logger.info(f"Hydrated AI case {case.case_id} from template {template.template_id}")
        return case

    async def generate_case_ai_by_domain(
        self,
        domain_label: Union[str, Domain] = Domain.PENAL,
        level=None,
        seed=None,
        timeout: Optional[float] = None,
        lang: Optional[str] = None,
    ) -> Case:
        """Ask the backend for a full case in a domain; falls back to that domain's template."""
        domain = normalize_domain(domain_label)
        chosen_level = normalize_level(level)
        seed_text = normalize_seed(seed) if seed is not None else f"AI:{int(time.time() * 1000)}:{uuid.uuid4().hex[:8]}"
        fallback_template = TEMPLATE_BY_DOMAIN[domain]

        if self.agents is None:
            logger.warning("AI case generation requested without a backend; using local case")
            return self.generate_case(fallback_template, seed_text, chosen_level)

        payload = {
            "mode": "full",
            "domaine": domain.value,
            "level": chosen_level.value if chosen_level else None,
            "seed": seed_text,
            "lang": lang or self.settings.lang,
        }
        try:
            raw = await self.agents.generate_case(payload, timeout=timeout or self.settings.domain_case_timeout)
        except AIServiceError as exc:
            logger.warning(f"AI case generation failed ({exc.message}); using local {fallback_template}")
            return self.generate_case(fallback_template, seed_text, chosen_level)

        case = hydrate_case(raw, domain=domain, level=chosen_level, seed=seed_text, taken_ids=self.cache.ids())
        if not case.summary:
            rng = rng_from_seed(f"SUMMARY:{domain.value}:{seed_text}")
            case = case.model_copy(update={
                "summary": (
                    f"{domain.value} dossier (DRC simulation). Indicative stake: {compose_stake(rng)}. "
                    f"City: {case.meta.city}."
                ),
            })
        logger.info(f"Hydrated AI case {case.case_id} for domain {domain.value}")
        return self.cache.save(case)

    def base_cases(self) -> list[Case]:
        """The fixed starter catalog, rebuilt deterministically and cached."""
        cases = []
        for index, (template_id, level, hint) in enumerate(BASE_CASES):
            seed = f"BASE:{index + 1}:{template_id}:{short_hash(hint)}"
            cases.append(self.generate_case(template_id, seed, level, source="base"))
        return cases
