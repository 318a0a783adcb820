"""Document loading for PDF and plain-text sources.

Uses PyMuPDF (fitz) for PDF text extraction. Files that cannot be read,
or that yield no text, are reported back to the caller as failures and
never reach the summarization pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import fitz  # PyMuPDF

from docscreener.models import Document
from docscreener.utils.files import iter_document_paths
from docscreener.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)


def iter_text_parts(path: Path) -> Iterator[str]:
    """Yield text content from a PDF file page by page."""
    doc = fitz.open(path)
    try:
        for index in range(len(doc)):
            try:
                text = doc[index].get_text() or ""
            except Exception as exc:  # pragma: no cover - defensive path
                LOGGER.warning("Failed to read page %s in %s: %s", index, path, exc)
                continue
            normalized = normalize_whitespace(text.splitlines())
            if normalized:
                yield normalized + "\n"
    finally:
        doc.close()


def parse_pdf_date(value: str | None) -> Optional[datetime]:
    """Parse a PDF date string such as ``D:20230908143000+02'00'``."""
    if not value:
        return None
    digits = value[2:] if value.startswith("D:") else value
    for length, fmt in ((14, "%Y%m%d%H%M%S"), (12, "%Y%m%d%H%M"), (8, "%Y%m%d")):
        if len(digits) < length:
            continue
        try:
            return datetime.strptime(digits[:length], fmt)
        except ValueError:
            continue
    LOGGER.debug("Unrecognized PDF date %r", value)
    return None


def get_pdf_dates(path: Path) -> Dict[str, Optional[datetime]]:
    """Extract creation and modification dates from PDF metadata."""
    doc = fitz.open(path)
    try:
        metadata = doc.metadata or {}
        return {
            "created_at": parse_pdf_date(metadata.get("creationDate")),
            "modified_at": parse_pdf_date(metadata.get("modDate")),
        }
    finally:
        doc.close()


def load_document(path: Path) -> Document:
    """Read a single PDF or text file into a Document."""
    if path.suffix.lower() == ".pdf":
        text = "".join(iter_text_parts(path))
        dates = get_pdf_dates(path)
        return Document(key=path.name, path=path, text=text or None, **dates)

    stat = path.stat()
    return Document(
        key=path.name,
        path=path,
        text=path.read_text(encoding="utf-8", errors="replace") or None,
        modified_at=datetime.fromtimestamp(stat.st_mtime),
    )


@dataclass(slots=True)
class LoadReport:
    documents: List[Document] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.documents)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


def load_documents(inputs: Iterable[Path]) -> LoadReport:
    """Load every supported file under the given paths."""
    report = LoadReport()
    seen: Dict[str, int] = {}

    for path in iter_document_paths(inputs):
        try:
            document = load_document(path)
        except Exception as exc:
            LOGGER.error("Failed to read %s: %s", path, exc)
            report.failed.append(path)
            continue

        if not document.has_text:
            LOGGER.warning("No text extracted from %s", path)
            report.failed.append(path)
            continue

        if document.key in seen:
            LOGGER.warning("Duplicate document name %s, keeping %s", document.key, path)
            report.documents[seen[document.key]] = document
        else:
            seen[document.key] = len(report.documents)
            report.documents.append(document)

    return report
