"""
Document Import Pipeline for Justice Lab
Turns the text of a real court document (PDF) into a simulated dossier
in the matching domain.
"""

import logging
import re
import time
from io import BytesIO
from typing import Optional

import PyPDF2

from case_generator import CaseGenerator, infer_domain_from_prompt, normalize_domain, template_id_for_domain
from seeded_rng import short_hash
from schemas import Case

logger = logging.getLogger(__name__)

EXCERPT_MAX_CHARS = 1500
IMPORT_AI_TIMEOUT = 25.0


def extract_text_from_pdf(pdf_path: str) -> str:
    """Extract text from PDF file."""
    with open(pdf_path, "rb") as file:
        reader = PyPDF2.PdfReader(file)
        text = ""
        for page in reader.pages:
            text += (page.extract_text() or "") + "\n"
    return text


def extract_text_from_pdf_bytes(pdf_bytes: bytes) -> str:
    """Extract text from PDF bytes."""
    reader = PyPDF2.PdfReader(BytesIO(pdf_bytes))
    text = ""
    for page in reader.pages:
        text += (page.extract_text() or "") + "\n"
    return text


def make_excerpt(text: str, limit: int = EXCERPT_MAX_CHARS) -> str:
    return re.sub(r"\s+", " ", text).strip()[:limit]


class DocumentImporter:
    """Imports document text as a playable case, through the AI backend or locally."""

    def __init__(self, generator: CaseGenerator):
        self.generator = generator

    async def import_text(
        self,
        text: str,
        filename: str = "document.pdf",
        domain: Optional[str] = None,
        level=None,
        seed: Optional[str] = None,
        ai: bool = True,
    ) -> Case:
        """
        Build a case from document text.

        Args:
            text: Extracted document text (must not be blank)
            filename: Name shown in the summary and kept in the case meta
            domain: Domain label; inferred from the text when omitted
            level: Difficulty level
            seed: Generation seed; defaults to one derived from the filename
            ai: Ask the backend for the case first

        Returns:
            Case: The cached case with ``meta.source == "import"``
        """
        excerpt = make_excerpt(text or "")
        if not excerpt:
            raise ValueError("Document text is empty")

        chosen_domain = normalize_domain(domain) if domain else infer_domain_from_prompt(excerpt)
        seed_text = seed or f"DOC:{short_hash(filename)}:{int(time.time() * 1000)}"
        heading = f"Import ({filename}), excerpt: {excerpt}"

        if ai:
            case = await self.generator.generate_case_ai_by_domain(
                chosen_domain, level=level, seed=seed_text, timeout=IMPORT_AI_TIMEOUT
            )
            case = case.model_copy(update={"summary": f"{heading}\n\n{case.summary}".strip()})
        else:
            case = self.generator.generate_case(
                template_id_for_domain(chosen_domain), seed_text, level, prompt=heading, source="import"
            )

        meta = case.meta.model_copy(update={
            "source": "import",
            "origin_domain": chosen_domain.value,
            "filename": filename,
            "excerpt": excerpt,
        })
        case = case.model_copy(update={"meta": meta})
        logger.info(f"Imported {filename} as {case.case_id} ({chosen_domain.value})")
        return self.generator.cache.save(case)

    async def import_pdf_bytes(self, pdf_bytes: bytes, filename: str = "document.pdf", **kwargs) -> Case:
        return await self.import_text(extract_text_from_pdf_bytes(pdf_bytes), filename=filename, **kwargs)
