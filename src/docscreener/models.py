"""Core DocScreener data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


@dataclass(slots=True, frozen=True)
class Document:
    """Extracted text of a source file, keyed by its file name."""

    key: str
    path: Path
    text: Optional[str]
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())


@dataclass(slots=True, frozen=True)
class Segment:
    """Keyword-bounded slice of a document's normalized text."""

    index: int
    text: str


class OutcomeStatus(str, Enum):
    SUMMARIZED = "summarized"
    FAILED = "failed"
    SKIPPED = "skipped"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class DocumentOutcome:
    """Terminal result of one document's pipeline unit."""

    key: str
    status: OutcomeStatus
    summary: Optional[str] = None
    output_path: Optional[Path] = None
    error: Optional[str] = None
    persist_error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUMMARIZED


@dataclass(slots=True)
class ProcessedResult:
    """A loaded document together with its summary and live progress."""

    document: Document
    summary: Optional[str] = None
    progress: Optional[Dict[int, bool]] = None

    @property
    def summary_generated(self) -> bool:
        return self.summary is not None

    @property
    def processing(self) -> bool:
        return self.progress is not None
