"""Loaded documents and their summaries."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional

from docscreener.models import Document, DocumentOutcome, ProcessedResult
from docscreener.pipeline.progress import ProgressTracker

LOGGER = logging.getLogger(__name__)


class Workspace:
    """Keeps the current document set, recorded summaries and live progress."""

    def __init__(self, tracker: ProgressTracker | None = None) -> None:
        self.tracker = tracker if tracker is not None else ProgressTracker()
        self._lock = threading.Lock()
        self._documents: Dict[str, Document] = {}
        self._summaries: Dict[str, str] = {}

    def add(self, documents: Iterable[Document]) -> int:
        count = 0
        with self._lock:
            for document in documents:
                if document.key in self._documents:
                    LOGGER.debug("Replacing document %s", document.key)
                    self._summaries.pop(document.key, None)
                self._documents[document.key] = document
                count += 1
        return count

    def documents(self, keys: Optional[Iterable[str]] = None) -> List[Document]:
        with self._lock:
            if keys is None:
                return [self._documents[key] for key in sorted(self._documents)]
            return [self._documents[key] for key in keys if key in self._documents]

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._documents

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def record(self, outcome: DocumentOutcome) -> None:
        """Keep the summary of a successful outcome; other outcomes change nothing."""
        if not outcome.succeeded or outcome.summary is None:
            return
        with self._lock:
            if outcome.key in self._documents:
                self._summaries[outcome.key] = outcome.summary

    def result(self, key: str) -> Optional[ProcessedResult]:
        # Progress before summary: a unit records its summary, then clears progress.
        progress = self.tracker.get(key)
        with self._lock:
            document = self._documents.get(key)
            summary = self._summaries.get(key)
        if document is None:
            return None
        return ProcessedResult(document=document, summary=summary, progress=progress)

    def sorted_results(self) -> List[ProcessedResult]:
        with self._lock:
            keys = sorted(self._documents)
        results = (self.result(key) for key in keys)
        return [result for result in results if result is not None]
