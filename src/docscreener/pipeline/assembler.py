"""Summary assembly and output files."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from docscreener.models import Document

LOGGER = logging.getLogger(__name__)

SEGMENT_DELIMITER = "\n\n====================\n\n"
SUMMARY_SUFFIX = "_summarized.txt"


def summary_folder_name(run_started_at: datetime) -> str:
    return f"summary-{run_started_at:%Y%m%d%H%M%S}"


def summary_output_path(document: Document, run_started_at: datetime) -> Path:
    """Return ``<parent>/summary-<timestamp>/<stem>_summarized.txt``."""
    folder = document.path.parent / summary_folder_name(run_started_at)
    return folder / f"{document.path.stem}{SUMMARY_SUFFIX}"


def join_summaries(
    summaries: Sequence[str], *, prompt: str = "", include_prompt: bool = True
) -> str:
    parts = list(summaries)
    if include_prompt:
        parts.insert(0, prompt)
    return SEGMENT_DELIMITER.join(parts)


@dataclass(slots=True)
class PersistResult:
    path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SummaryAssembler:
    """Writes joined summaries into the run's shared output folder."""

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def persist(self, document: Document, run_started_at: datetime, summary: str) -> PersistResult:
        """Write the summary next to its source; failures are returned, not raised."""
        target = summary_output_path(document, run_started_at)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(target, summary)
        except OSError as exc:
            LOGGER.error("Failed to write summary for %s to %s: %s", document.key, target, exc)
            return PersistResult(error=str(exc))

        LOGGER.info("Summary written to %s", target)
        return PersistResult(path=target)

    def _write_atomic(self, target: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding=self.encoding) as handle:
                handle.write(content)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
