"""
Written outputs derived from a case and a run: the clerk's certified
hearing record, magistracy exam grading, and judgment / appeal drafts
for training purposes.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import Field

from game_engine import now_iso
from schemas import CamelModel, Case, Run
from seeded_rng import clamp, round_half_up

RECORD_MAX_LINES = 140
RECORD_MAX_PIECES = 12

INCIDENT_PATTERN = re.compile(r"incident|nullit|continuance|renvoi|joinder|severance|disclosure|communication", re.I)
DECISION_PATTERN = re.compile(
    r"for these reasons|ruling on|whereas|operative part|dismisses|upholds|orders|par ces motifs|statuant|attendu que",
    re.I,
)
ETHICS_PATTERN = re.compile(r"corrupt|bribe|gift|threat|pressure|money", re.I)

EXAM_RECOMMENDATIONS = [
    "Give reasons for every ruling on an incident in 2 to 6 sentences (facts, rule, application).",
    "Record requests, objections, rulings and admitted or excluded pieces in the hearing record.",
    "Handle late pieces explicitly (disclosure and a time limit).",
    "Keep the operative part clear, enforceable and consistent with the reasoning.",
]


class ClerkRecord(CamelModel):
    text: str
    meta: dict = {}


class RubricLine(CamelModel):
    score: int
    max: int


class ExamGrade(CamelModel):
    score: int
    appreciation: str
    rubric: dict[str, RubricLine]
    used_engine_score: bool = False
    recommendations: list[str] = Field(default_factory=lambda: list(EXAM_RECOMMENDATIONS))


class JudgmentDraft(CamelModel):
    motivation: str
    dispositif: str
    remedies: str


class AppealDraft(CamelModel):
    memo: str
    grounds: list[str]
    risk: float
    due_process: float


def _line(value) -> str:
    return re.sub(r"\s+", " ", str(value or "")).strip()


def _stamp() -> str:
    return datetime.now().strftime("%d/%m/%Y at %H:%M")


def hearing_entries(run: Run) -> list[str]:
    """Audit log and incidents as one-line mentions, oldest first."""
    entries = []
    for entry in reversed(run.state.audit_log):
        head = " - ".join(part for part in (_line(entry.action), _line(entry.title)) if part)
        tail = f": {_line(entry.detail)}" if entry.detail else ""
        entries.append(f"[{entry.ts}] {head}{tail}")
    for incident in reversed(run.state.incidents):
        entries.append(f"[{incident.ts}] INCIDENT - {_line(incident.title)} ({incident.type}, {incident.points} pts)")
    return entries[:RECORD_MAX_LINES]


# ============================================================
# CLERK'S RECORD
# ============================================================

def build_clerk_record(case: Case, run: Optional[Run] = None, clerk_name: str = "The Clerk") -> ClerkRecord:
    meta = case.meta
    stamp = _stamp()
    parties = list(case.parties.values())

    header = [
        "DEMOCRATIC REPUBLIC OF THE CONGO",
        "---",
        "HEARING RECORD (CERTIFIED)",
        f"Court: {meta.court}",
        f"Chamber: {meta.chamber}",
        f"City: {meta.city}",
        f"Date/time: {stamp}",
        f"Case reference: {case.case_id}",
        f"Title: {case.title}",
        "",
    ]

    party_lines = ["PARTIES"]
    party_lines += [f"- {party.role}: {_line(party.name)}" for party in parties] or ["- (none recorded)"]
    party_lines.append("")

    piece_lines = ["PIECES PRODUCED (summary)"]
    for piece in case.pieces[:RECORD_MAX_PIECES]:
        late = " (late)" if piece.is_late else ""
        piece_lines.append(f"- {piece.id} - {_line(piece.title)}{late} - reliability: {piece.reliability}%")
    piece_lines.append("")

    entries = hearing_entries(run) if run else []
    body = ["PROCEEDINGS"]
    body += [f"- {entry}" for entry in entries] or ["- (no entry recorded)"]
    body.append("")

    certification = [
        "CERTIFICATION",
        f"I, the undersigned {clerk_name}, certify this record true and accurate.",
        f"Done at {meta.city}, on {stamp}.",
        "",
        "SIGNATURES",
        f"The Clerk: _______________________ ({clerk_name})",
        "The Presiding Judge: _______________________",
        "",
    ]

    text = "\n".join(header + party_lines + piece_lines + body + certification)
    return ClerkRecord(
        text=text,
        meta={
            "type": "CERTIFIED_RECORD",
            "createdAt": now_iso(),
            "clerkName": clerk_name,
            "caseId": case.case_id,
            "runId": run.run_id if run else None,
        },
    )


# ============================================================
# MAGISTRACY EXAM
# ============================================================

def appreciation_for(total: int) -> str:
    if total >= 85:
        return "Excellent: magistracy level confirmed"
    if total >= 70:
        return "Very good: solid, a few adjustments"
    if total >= 55:
        return "Average: gaps to correct"
    return "Insufficient: full review recommended"


def grade_magistracy_exam(case: Case, run: Run, decision_text: str = "") -> ExamGrade:
    """
    Grade a finished run on the magistracy exam rubric.

    Procedure and motivation are out of 30, hearing conduct out of 20,
    ethics and drafting out of 10. When the run has been scored the total
    is blended 70/30 with the engine's global score.
    """
    entries = hearing_entries(run)
    decision_text = decision_text or run.answers.decision_motivation

    incidents = len(run.state.incidents) + sum(
        1 for entry in run.state.audit_log
        if entry.action != "INCIDENT_RECORDED" and INCIDENT_PATTERN.search(entry.title)
    )
    procedure = 15 + clamp(incidents * 2, 0, 10)
    if any(piece.is_late for piece in case.pieces):
        procedure += 3

    motivation = 15 + (10 if DECISION_PATTERN.search(decision_text or "") else 0)
    conduct = 10 + clamp(len(entries) // 6, 0, 10)
    ethics = 6 + (0 if ETHICS_PATTERN.search(" ".join(entries)) else 2)

    drafting = 6
    if len(decision_text or "") > 600:
        drafting += 2
    if len(decision_text or "") > 1200:
        drafting += 2

    rubric = {
        "procedure": RubricLine(score=clamp(procedure, 0, 30), max=30),
        "motivation": RubricLine(score=clamp(motivation, 0, 30), max=30),
        "hearingConduct": RubricLine(score=clamp(conduct, 0, 20), max=20),
        "ethics": RubricLine(score=clamp(ethics, 0, 10), max=10),
        "drafting": RubricLine(score=clamp(drafting, 0, 10), max=10),
    }
    total = clamp(procedure + motivation + conduct + ethics + drafting, 0, 100)

    scored = bool(run.debrief)
    if scored:
        total = clamp(round_half_up(total * 0.7 + run.score_global * 0.3), 0, 100)

    return ExamGrade(
        score=total,
        appreciation=appreciation_for(total),
        rubric=rubric,
        used_engine_score=scored,
    )


# ============================================================
# DRAFTS
# ============================================================

def build_judgment_draft(case: Case, run: Run) -> JudgmentDraft:
    facts = case.summary[:1200]
    qualification = run.answers.qualification[:700]
    justification = run.answers.procedure_justification[:700]
    incidents = run.state.incidents[:6]

    motivation = [
        "**I. Facts and procedure**",
        facts or "(to complete: essential facts)",
        "",
        "**II. Questions in dispute**",
        "1) Admissibility, jurisdiction and any objections.",
        "2) Merits (liability or rights invoked) and assessment of the evidence.",
        "",
        "**III. Applicable rules**",
        f"(DRC law / {case.domain.value}): relevant texts to specify (code, special statute, adversarial principle).",
        "",
        "**IV. Application to the case**",
        f"Qualification / analysis: {qualification or '(to complete)'}",
        f"Procedure / adversarial debate: {justification or '(to complete)'}",
    ]
    if incidents:
        motivation += ["", "**Incidents raised**"]
        motivation += [f"- {incident.title} ({incident.type})" for incident in incidents]
    motivation += ["", "**V. Conclusion**", "The court rules in accordance with the above reasons."]

    dispositif = [
        "**FOR THESE REASONS**",
        "- Declares the claim admissible (or inadmissible) (to adapt).",
        "- Upholds (or dismisses) the objection (to adapt).",
        "- Declares the claim founded (or unfounded) (to adapt).",
        "- Orders enforcement measures where appropriate (to adapt).",
        "- Orders costs against (to adapt).",
    ]
    if run.answers.decision_dispositif:
        dispositif += ["", run.answers.decision_dispositif]

    remedies = [
        "**Remedies (to adapt to the subject matter and court)**",
        "- Appeal: before the competent Court of Appeal, within the statutory time limits.",
        "- Opposition: for a judgment by default, under the statutory conditions.",
        "- Cassation: under the conditions provided by law.",
    ]

    return JudgmentDraft(
        motivation="\n".join(motivation),
        dispositif="\n".join(dispositif),
        remedies="\n".join(remedies),
    )


def build_appeal_draft(case: Case, run: Run) -> AppealDraft:
    """Heuristic grounds of appeal from the run's risk modifiers, flags and incidents."""
    risk = run.state.risk_modifiers.appeal_risk_penalty
    due_process = run.state.risk_modifiers.due_process_bonus
    incident_types = [incident.type for incident in run.state.incidents[:10]]
    flag_text = " ".join(f"{flag.label} {flag.detail}" for flag in run.flags)

    grounds = []
    if risk >= 4:
        grounds.append("Alleged breach of the adversarial principle / handling of continuances and disclosures")
    if re.search(r"nullit|defect|jurisdiction", flag_text, re.I) or "nullity" in incident_types:
        grounds.append("Procedural nullity (formal defect or contested jurisdiction)")
    if any(re.search(r"incompeten|inadmissib", t) for t in incident_types):
        grounds.append("Objection of lack of jurisdiction or inadmissibility wrongly decided")
    if any(re.search(r"investigat|expert|site.visit", t) for t in incident_types):
        grounds.append("Refused or insufficient investigative measure (assessment of evidence)")
    if not grounds:
        grounds.append("Error in the assessment of facts and evidence (to specify)")

    memo = [
        "**Draft notice of appeal (training)**",
        f"**Case**: {case.case_id[:40]} - {case.title[:140]}",
        "**Decision appealed**: (to specify: date and court).",
        "",
        "**Grounds of appeal (examples)**",
        *[f"{index + 1}) {ground}" for index, ground in enumerate(grounds)],
        "",
        "**Requests to the Court**",
        "- Reverse or set aside the decision (in whole or in part);",
        "- Rule in accordance with the grounds;",
        "- Order a further investigative measure if needed.",
        "",
        "**Teaching notes**",
        f"- Appeal risk index (simulation): {risk:g}/20; due-process bonus: {due_process:g}/20.",
    ]

    return AppealDraft(memo="\n".join(memo), grounds=grounds, risk=risk, due_process=due_process)
