"""
Command-line entry point.
"""
import json

import pytest

from cli import create_parser, main


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    monkeypatch.setenv("JUSTICE_LAB_STORAGE_DIR", str(tmp_path))
    monkeypatch.setenv("JUSTICE_LAB_API_TOKEN", "")
    return tmp_path


def _output(capsys):
    return json.loads(capsys.readouterr().out)


class TestParser:
    def test_generate_arguments(self):
        parsed = create_parser().parse_args(["generate", "-t", "TPL_PENAL_DETENTION", "-s", "7", "--ai"])
        assert parsed.command == "generate"
        assert parsed.template == "TPL_PENAL_DETENTION"
        assert parsed.seed == "7"
        assert parsed.ai is True

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "justicelab" in capsys.readouterr().out


class TestCommands:
    def test_templates(self, cli_env, capsys):
        assert main(["templates"]) == 0
        templates = _output(capsys)
        assert len(templates) == 8
        assert {"templateId", "domain", "title", "levels"} <= set(templates[0])

    def test_generate_is_cached_on_disk(self, cli_env, capsys):
        assert main(["generate", "--template", "TPL_PENAL_DETENTION", "--seed", "SAMPLE-1"]) == 0
        case = _output(capsys)
        assert case["meta"]["seed"] == "SAMPLE-1"
        assert case["caseId"] in (cli_env / "justiceLabCaseCache.json").read_text(encoding="utf-8")

    def test_domain_without_token_falls_back(self, cli_env, capsys):
        assert main(["domain", "land boundary dispute", "--seed", "9"]) == 0
        case = _output(capsys)
        assert case["domain"] == "Land"
        assert case["meta"]["source"] == "generated"

    def test_import_text_file(self, cli_env, capsys, tmp_path):
        document = tmp_path / "ruling.txt"
        document.write_text("Contestation of a municipal permit withdrawal.", encoding="utf-8")
        assert main(["import", str(document), "--seed", "IMP"]) == 0
        case = _output(capsys)
        assert case["domain"] == "Administrative"
        assert case["meta"]["source"] == "import"
        assert case["meta"]["filename"] == "ruling.txt"

    def test_import_missing_file(self, cli_env, capsys, tmp_path):
        assert main(["import", str(tmp_path / "missing.pdf")]) == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_import_empty_document(self, cli_env, capsys, tmp_path):
        document = tmp_path / "empty.txt"
        document.write_text("   ", encoding="utf-8")
        assert main(["import", str(document)]) == 1
        assert "empty" in capsys.readouterr().err

    def test_import_corrupt_pdf(self, cli_env, capsys, tmp_path):
        document = tmp_path / "bad.pdf"
        document.write_bytes(b"this is not a pdf document")
        assert main(["import", str(document)]) == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_runs_and_stats_start_empty(self, cli_env, capsys):
        assert main(["runs"]) == 0
        assert _output(capsys) == []
        assert main(["stats"]) == 0
        stats = _output(capsys)
        assert stats["totalRuns"] == 0
        assert set(stats["skills"]) == {"qualification", "procedure", "audience", "rights", "motivation"}
