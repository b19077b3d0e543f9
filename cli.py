#!/usr/bin/env python3
"""
Justice Lab CLI

Usage:
    justicelab <command> [options]

Commands:
    templates   List the case templates
    generate    Generate a case from a template and seed
    domain      Generate a case for a domain label (AI first, local fallback)
    import      Import a PDF or text document as a simulated case
    runs        List stored runs
    stats       Show aggregate stats

Environment:
    JUSTICE_LAB_API_BASE, JUSTICE_LAB_API_TOKEN, JUSTICE_LAB_STORAGE_DIR,
    JUSTICE_LAB_LOG_LEVEL (see .env.example)
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from PyPDF2.errors import PdfReadError

from agents import AgentManager
from case_data import get_case_templates
from case_generator import CaseGenerator
from config import Settings, get_settings
from extraction_pipeline import DocumentImporter, extract_text_from_pdf
from schemas import STEP_DISPLAY
from storage import CaseCache, RunStore, open_store


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="justicelab",
        description="Justice Lab case generator and run store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s templates
  %(prog)s generate --template TPL_PENAL_DETENTION --seed SAMPLE-1 --level Intermediate
  %(prog)s domain "labor dispute" --seed 42
  %(prog)s import judgment.pdf --domain Land
        """,
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: JUSTICE_LAB_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("templates", help="List case templates")

    generate_parser = subparsers.add_parser("generate", help="Generate a case")
    generate_parser.add_argument("--template", "-t", required=True, help="Template id")
    generate_parser.add_argument("--seed", "-s", default=None, help="Seed (default: 0)")
    generate_parser.add_argument("--level", "-l", default=None, help="Beginner, Intermediate or Advanced")
    generate_parser.add_argument("--ai", action="store_true", help="Ask the AI backend first")

    domain_parser = subparsers.add_parser("domain", help="Generate a case for a domain")
    domain_parser.add_argument("label", help="Domain label or free text")
    domain_parser.add_argument("--seed", "-s", default=None)
    domain_parser.add_argument("--level", "-l", default=None)

    import_parser = subparsers.add_parser("import", help="Import a document as a case")
    import_parser.add_argument("path", help="PDF or text file")
    import_parser.add_argument("--domain", "-d", default=None)
    import_parser.add_argument("--level", "-l", default=None)
    import_parser.add_argument("--seed", "-s", default=None)
    import_parser.add_argument("--ai", action="store_true", help="Ask the AI backend first")

    subparsers.add_parser("runs", help="List stored runs")
    subparsers.add_parser("stats", help="Show aggregate stats")

    return parser


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _read_document(path: Path) -> str:
    if path.suffix.lower() == ".pdf":
        return extract_text_from_pdf(str(path))
    return path.read_text(encoding="utf-8")


def run_command(parsed: argparse.Namespace, settings: Settings) -> int:
    store = open_store(settings.storage_dir)
    cache = CaseCache(store)
    runs = RunStore(store)
    generator = CaseGenerator(cache, agents=AgentManager(settings), settings=settings)

    if parsed.command == "templates":
        _print_json([
            {"templateId": t.template_id, "domain": t.domain.value, "title": t.base_title,
             "levels": [level.value for level in t.levels]}
            for t in get_case_templates()
        ])
    elif parsed.command == "generate":
        case = asyncio.run(generator.generate_case_hybrid(parsed.template, parsed.seed, parsed.level, ai=parsed.ai))
        _print_json(case.to_json_dict())
    elif parsed.command == "domain":
        case = asyncio.run(generator.generate_case_ai_by_domain(parsed.label, parsed.level, parsed.seed))
        _print_json(case.to_json_dict())
    elif parsed.command == "import":
        path = Path(parsed.path)
        try:
            text = _read_document(path)
        except (OSError, PdfReadError) as e:
            print(f"Cannot read {path}: {e}", file=sys.stderr)
            return 1
        importer = DocumentImporter(generator)
        try:
            case = asyncio.run(importer.import_text(
                text, filename=path.name, domain=parsed.domain, level=parsed.level, seed=parsed.seed, ai=parsed.ai,
            ))
        except ValueError as e:
            print(str(e), file=sys.stderr)
            return 1
        _print_json(case.to_json_dict())
    elif parsed.command == "runs":
        _print_json([
            {"runId": run.run_id, "caseId": run.case_id, "step": STEP_DISPLAY[run.step],
             "startedAt": run.started_at, "scoreGlobal": run.score_global}
            for run in runs.read_runs()
        ])
    elif parsed.command == "stats":
        _print_json(runs.read_stats().to_json_dict())
    return 0


def main(args: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 1

    settings = get_settings()
    setup_logging(parsed.log_level or settings.log_level)
    return run_command(parsed, settings)


if __name__ == "__main__":
    sys.exit(main())
