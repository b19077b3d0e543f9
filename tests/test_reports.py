"""
Clerk's record, magistracy exam grading and training drafts.
"""
import pytest

from game_engine import record_incident
from reports import (
    EXAM_RECOMMENDATIONS,
    appreciation_for,
    build_appeal_draft,
    build_clerk_record,
    build_judgment_draft,
    grade_magistracy_exam,
    hearing_entries,
)
from schemas import Flag

LONG_DECISION = "FOR THESE REASONS, the court, ruling on the objection, upholds the claim. " + "x" * 1300


# ============================================================
# CLERK'S RECORD
# ============================================================

class TestClerkRecord:
    def test_sections_without_run(self, sample_case):
        record = build_clerk_record(sample_case)
        text = record.text
        for section in ("HEARING RECORD (CERTIFIED)", "PARTIES", "PIECES PRODUCED", "PROCEEDINGS", "CERTIFICATION"):
            assert section in text
        assert "- (no entry recorded)" in text
        assert f"Case reference: {sample_case.case_id}" in text
        assert record.meta["type"] == "CERTIFIED_RECORD"
        assert record.meta["runId"] is None

    def test_late_pieces_marked(self, sample_case):
        text = build_clerk_record(sample_case).text
        late = [piece for piece in sample_case.pieces if piece.is_late]
        for piece in late:
            assert f"- {piece.id} - {piece.title} (late)" in text

    def test_entries_from_run(self, sample_case, sample_run):
        run = record_incident(sample_run, "nullity", title="Defective summons")
        record = build_clerk_record(sample_case, run, clerk_name="M. Kabila")
        assert "INCIDENT - Defective summons (nullity, 6 pts)" in record.text
        assert "INCIDENT_RECORDED - Defective summons" in record.text
        assert "(M. Kabila)" in record.text
        assert record.meta["runId"] == run.run_id

    def test_entries_oldest_first(self, sample_run):
        run = record_incident(sample_run, "joinder", title="First")
        run = record_incident(run, "severance", title="Second")
        entries = hearing_entries(run)
        assert "First" in entries[0]
        assert "Second" in entries[1]


# ============================================================
# MAGISTRACY EXAM
# ============================================================

class TestExamGrade:
    def test_baseline(self, sample_case, sample_run):
        grade = grade_magistracy_exam(sample_case, sample_run)
        assert grade.rubric["procedure"].score == 18
        assert grade.rubric["motivation"].score == 15
        assert grade.rubric["hearingConduct"].score == 10
        assert grade.rubric["ethics"].score == 8
        assert grade.rubric["drafting"].score == 6
        assert grade.score == 57
        assert grade.appreciation.startswith("Average")
        assert grade.used_engine_score is False
        assert grade.recommendations == EXAM_RECOMMENDATIONS

    def test_reasoned_decision(self, sample_case, sample_run):
        grade = grade_magistracy_exam(sample_case, sample_run, LONG_DECISION)
        assert grade.rubric["motivation"].score == 25
        assert grade.rubric["drafting"].score == 10
        assert grade.score == 71
        assert grade.appreciation.startswith("Very good")

    def test_incidents_raise_procedure(self, sample_case, sample_run):
        run = record_incident(sample_run, "nullity")
        assert grade_magistracy_exam(sample_case, run).rubric["procedure"].score == 20

    def test_ethics_flag_words(self, sample_case, sample_run):
        run = record_incident(sample_run, "other", title="Attempted bribe of a witness")
        assert grade_magistracy_exam(sample_case, run).rubric["ethics"].score == 6

    def test_blended_with_engine_score(self, sample_case, sample_run):
        run = sample_run.model_copy(update={"debrief": ["Global score: 100/100"], "score_global": 100})
        grade = grade_magistracy_exam(sample_case, run)
        assert grade.used_engine_score is True
        assert grade.score == 70

    @pytest.mark.parametrize("total, prefix", [
        (90, "Excellent"),
        (85, "Excellent"),
        (70, "Very good"),
        (55, "Average"),
        (10, "Insufficient"),
    ])
    def test_appreciation_bands(self, total, prefix):
        assert appreciation_for(total).startswith(prefix)


# ============================================================
# DRAFTS
# ============================================================

class TestDrafts:
    def test_judgment_draft(self, sample_case, sample_run):
        run = record_incident(sample_run, "continuance", title="Continuance requested")
        run.answers.qualification = "Arbitrary detention"
        run.answers.decision_dispositif = "Orders the release of the accused."
        draft = build_judgment_draft(sample_case, run)
        assert sample_case.summary[:50] in draft.motivation
        assert "Qualification / analysis: Arbitrary detention" in draft.motivation
        assert "- Continuance requested (continuance)" in draft.motivation
        assert draft.dispositif.startswith("**FOR THESE REASONS**")
        assert draft.dispositif.endswith("Orders the release of the accused.")
        assert "Cassation" in draft.remedies

    def test_judgment_draft_placeholders(self, sample_case, sample_run):
        draft = build_judgment_draft(sample_case, sample_run)
        assert "Qualification / analysis: (to complete)" in draft.motivation
        assert "**Incidents raised**" not in draft.motivation

    def test_default_appeal_ground(self, sample_case, sample_run):
        draft = build_appeal_draft(sample_case, sample_run)
        assert draft.grounds == ["Error in the assessment of facts and evidence (to specify)"]
        assert draft.risk == 0

    def test_appeal_grounds_from_run(self, sample_case, sample_run):
        run = record_incident(sample_run, "nullity")
        run.state.risk_modifiers.appeal_risk_penalty = 5
        draft = build_appeal_draft(sample_case, run)
        assert len(draft.grounds) == 2
        assert draft.grounds[0].startswith("Alleged breach of the adversarial principle")
        assert draft.grounds[1].startswith("Procedural nullity")
        assert "Appeal risk index (simulation): 5/20" in draft.memo

    def test_appeal_ground_from_flags(self, sample_case, sample_run):
        run = sample_run.model_copy(update={"flags": [Flag(level="warn", label="Contested jurisdiction")]})
        assert any(g.startswith("Procedural nullity") for g in build_appeal_draft(sample_case, run).grounds)

    def test_appeal_grounds_from_auto_incidents(self, sample_case, sample_run):
        run = record_incident(sample_run, "site_visit", title="Site visit")
        run = record_incident(run, "incompetence", title="Objection of lack of jurisdiction")
        grounds = build_appeal_draft(sample_case, run).grounds
        assert any(g.startswith("Refused or insufficient investigative measure") for g in grounds)
        assert len(grounds) == 2
