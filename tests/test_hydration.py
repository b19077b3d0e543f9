"""
Hydration of loosely typed AI payloads into Cases.
"""
import pytest

from case_data import GENERIC_EVENTS_DECK, get_court_info
from case_generator import hydrate_case, sanitize_pieces, unique_seed_and_id
from schemas import Case, Domain, Level
from seeded_rng import make_case_id, rng_from_seed

HOSTILE_PAYLOADS = [
    None,
    42,
    "not a case",
    [],
    {},
    {"pieces": "nope", "parties": 7, "eventsDeck": {"a": 1}, "objectionTemplates": "x"},
    {"pieces": [None, 3, {"reliability": "abc"}, {"reliability": 1e9}, {"reliability": float("nan")}]},
    {"domain": 12, "level": [], "meta": "broken", "pedagogy": ["x"]},
    {"objectionTemplates": [{"effects": {"risk": {"appealRiskPenalty": -5}}}, None, "junk"]},
    {"parties": {"plaintiff": {"name": ""}, "witness": None}},
]


class TestHydrationTotality:
    """Any payload yields a fully populated Case."""

    @pytest.mark.parametrize("raw", HOSTILE_PAYLOADS)
    def test_never_raises(self, raw):
        case = hydrate_case(raw, domain="Land", level="Advanced", seed="S1")
        assert isinstance(case, Case)
        assert case.case_id
        assert case.title
        assert case.jurisdiction
        assert case.parties
        assert case.events_deck
        assert case.objection_templates
        assert case.pedagogy.objectives
        assert all(0 <= piece.reliability <= 100 for piece in case.pieces)
        Case.model_validate(case.to_json_dict())

    def test_empty_payload_uses_domain_defaults(self):
        case = hydrate_case({}, domain="Land", level="Advanced", seed="S1")
        court = get_court_info(Domain.LAND)
        assert case.domain == Domain.LAND
        assert case.level == Level.ADVANCED
        assert case.case_id == make_case_id("TPL_LAND_TITLE_CUSTOM", "S1")
        assert case.meta.court == court.court
        assert case.meta.chamber == court.chamber
        assert case.meta.source == "ai"
        assert case.meta.origin_domain == "Land"
        assert [event.title for event in case.events_deck] == [event.title for event in GENERIC_EVENTS_DECK]

    def test_hydration_is_deterministic(self):
        raw = {"title": "T", "pieces": [{"title": "A"}, {"title": "B"}]}
        a = hydrate_case(raw, domain="Penal", seed="X")
        b = hydrate_case(raw, domain="Penal", seed="X")
        assert a.pieces == b.pieces
        assert a.objection_templates == b.objection_templates

    def test_payload_fields_win(self):
        raw = {
            "caseId": "RDC-CUSTOM-1",
            "domaine": "Labor",
            "niveau": "Beginner",
            "title": "  Dismissal of a driver  ",
            "summary": "A driver was dismissed.",
            "parties": {"plaintiff": {"name": "Jean", "role": "Employee"}, "defendant": "ACME"},
            "legalIssues": ["Was the dismissal regular?", "", 3],
            "meta": {"seed": "M1", "city": "Goma", "source": "ai"},
        }
        case = hydrate_case(raw, domain="Penal")
        assert case.case_id == "RDC-CUSTOM-1"
        assert case.domain == Domain.LABOR
        assert case.level == Level.BEGINNER
        assert case.title == "Dismissal of a driver"
        assert case.summary == "A driver was dismissed."
        assert case.parties["plaintiff"].name == "Jean"
        assert case.parties["defendant"].name == "ACME"
        assert case.parties["defendant"].role == "Defendant"
        assert case.legal_issues == ["Was the dismissal regular?", "3"]
        assert case.meta.seed == "M1"
        assert case.meta.city == "Goma"

    def test_loose_objections_are_completed(self):
        raw = {"objectionTemplates": [
            {"by": "Prosecutor", "title": "Late evidence", "effects": {"excludePieceIds": ["P1"], "appealRiskPenalty": 2}},
            {"title": "No id", "bestChoiceByRole": {"Judge": "Sustain", "Clerk": "bogus"}},
        ]}
        case = hydrate_case(raw, domain="Penal", seed="1")
        first, second = case.objection_templates
        assert first.id == "PEN_OBJ_1"
        assert first.best_choice_by_role["Prosecutor"] == "Sustain"
        assert first.best_choice_by_role["Defense-Counsel"] == "Overrule"
        assert first.effects.exclude_piece_ids == ["P1"]
        assert first.effects.risk.appeal_risk_penalty == 2
        assert second.id == "PEN_OBJ_2"
        assert second.by == "Defense-Counsel"
        assert second.best_choice_by_role == {"Judge": "Sustain"}


class TestSanitizePieces:
    def test_invariant_and_clamping(self):
        pieces = sanitize_pieces(
            [{"reliability": 150}, {"reliability": -4, "isLate": "yes"}, {"title": "x"}],
            rng_from_seed("pieces"),
        )
        assert [piece.id for piece in pieces] == ["P1", "P2", "P3"]
        assert pieces[0].reliability == 100
        assert pieces[1].reliability == 0
        assert pieces[1].is_late is True
        assert any(piece.reliability <= 65 for piece in pieces)

    def test_force_flip_when_nothing_contestable(self):
        pieces = sanitize_pieces([{"reliability": 90}, {"reliability": 95}], rng_from_seed("p"))
        assert pieces[-1].is_late is True
        assert pieces[0].reliability == 60

    def test_capped_at_ten(self):
        assert len(sanitize_pieces([{}] * 25, rng_from_seed("p"))) == 10

    def test_empty_stays_empty(self):
        assert sanitize_pieces([], rng_from_seed("p")) == []


class TestUniqueIds:
    def test_free_id_kept(self):
        case = hydrate_case({"caseId": "RDC-CUSTOM-1"}, domain="Penal", taken_ids={"RDC-OTHER"})
        assert case.case_id == "RDC-CUSTOM-1"

    def test_taken_id_is_reseeded(self):
        case = hydrate_case({"caseId": "RDC-CUSTOM-1"}, domain="Penal", seed="S", taken_ids={"RDC-CUSTOM-1"})
        assert case.case_id == make_case_id("TPL_PENAL_DETENTION", "S-u1")
        assert case.meta.seed == "S-u1"

    def test_skips_taken_candidates(self):
        taken = {make_case_id("TPL_LAND_TITLE_CUSTOM", seed) for seed in ("S", "S-u1", "S-u2")}
        case = hydrate_case({}, domain="Land", seed="S", taken_ids=taken)
        assert case.case_id == make_case_id("TPL_LAND_TITLE_CUSTOM", "S-u3")

    def test_unique_seed_and_id_gives_up(self):
        always_taken = type("Everything", (), {"__contains__": lambda self, item: True})()
        seed, case_id = unique_seed_and_id("TPL_PENAL_DETENTION", "S", always_taken)
        assert seed == "S-u12"
        assert case_id == make_case_id("TPL_PENAL_DETENTION", "S-u12")
