"""Document summarization pipeline.

Every document in a batch gets its own asyncio task. Within a task the
keyword segments are summarized one after the other so the joined output
keeps segment order; across tasks nothing is ordered or bounded. Blocking
client calls and file writes are pushed to worker threads.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from docscreener.config import AppConfig
from docscreener.models import Document, DocumentOutcome, OutcomeStatus, Segment
from docscreener.pipeline.assembler import SummaryAssembler, join_summaries
from docscreener.pipeline.progress import DocumentBusyError, ProgressTracker
from docscreener.utils.text import split_by_keywords

LOGGER = logging.getLogger(__name__)

OutcomeListener = Callable[[DocumentOutcome], None]


class Summarizer(Protocol):
    def summarize(
        self,
        text: str,
        model_id: str,
        *,
        prompt_prefix: str = ...,
        system_prompt: str = ...,
        max_tokens: int = ...,
    ) -> str: ...


def _outcome_from_task(key: str, task: "asyncio.Task[DocumentOutcome]") -> DocumentOutcome:
    if task.cancelled():
        return DocumentOutcome(key=key, status=OutcomeStatus.CANCELLED, error="Cancelled")
    exc = task.exception()
    if exc is not None:
        return DocumentOutcome(key=key, status=OutcomeStatus.FAILED, error=str(exc))
    return task.result()


class SummaryRun:
    """Handle on one batch: await all documents, one document, or cancel one."""

    def __init__(self, started_at: datetime, tasks: Dict[str, "asyncio.Task[DocumentOutcome]"]) -> None:
        self.started_at = started_at
        self._tasks = tasks

    @property
    def keys(self) -> List[str]:
        return list(self._tasks)

    @property
    def done(self) -> bool:
        return all(task.done() for task in self._tasks.values())

    def cancel(self, key: str) -> bool:
        task = self._tasks.get(key)
        if task is None:
            raise KeyError(key)
        return task.cancel()

    async def wait_for(self, key: str) -> DocumentOutcome:
        task = self._tasks[key]
        await asyncio.wait({task})
        return _outcome_from_task(key, task)

    async def wait(self) -> Dict[str, DocumentOutcome]:
        if self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        return {key: _outcome_from_task(key, task) for key, task in self._tasks.items()}


class PipelineOrchestrator:
    """Drives documents through segmentation, summarization and persistence."""

    def __init__(
        self,
        client: Summarizer,
        *,
        tracker: ProgressTracker | None = None,
        assembler: SummaryAssembler | None = None,
        on_outcome: Optional[OutcomeListener] = None,
    ) -> None:
        self.client = client
        self.tracker = tracker if tracker is not None else ProgressTracker()
        self.assembler = assembler if assembler is not None else SummaryAssembler()
        self.on_outcome = on_outcome

    def start(
        self,
        documents: Sequence[Document],
        config: AppConfig,
        *,
        started_at: datetime | None = None,
    ) -> SummaryRun:
        """Spawn one task per document. Must be called from a running event loop."""
        started_at = started_at or datetime.now()
        tasks: Dict[str, asyncio.Task[DocumentOutcome]] = {}
        for document in documents:
            if document.key in tasks:
                LOGGER.warning("Skipping duplicate document %s in batch", document.key)
                continue
            tasks[document.key] = asyncio.create_task(
                self._run_document(document, config, started_at),
                name=f"summarize:{document.key}",
            )
        LOGGER.info("Started summary run for %s documents", len(tasks))
        return SummaryRun(started_at, tasks)

    async def run(
        self,
        documents: Sequence[Document],
        config: AppConfig,
        *,
        started_at: datetime | None = None,
    ) -> Dict[str, DocumentOutcome]:
        return await self.start(documents, config, started_at=started_at).wait()

    async def _run_document(
        self, document: Document, config: AppConfig, started_at: datetime
    ) -> DocumentOutcome:
        if not document.has_text:
            LOGGER.warning("No text to summarize in %s", document.key)
            return self._emit(
                DocumentOutcome(
                    key=document.key, status=OutcomeStatus.SKIPPED, error="No extractable text"
                )
            )

        try:
            segments = split_by_keywords(document.text or "", config.keywords)
        except Exception as exc:
            LOGGER.error("Failed to segment %s: %s", document.key, exc)
            return self._emit(
                DocumentOutcome(key=document.key, status=OutcomeStatus.FAILED, error=str(exc))
            )

        try:
            self.tracker.begin(document.key, len(segments))
        except DocumentBusyError as exc:
            LOGGER.warning("Rejected run for %s: %s", document.key, exc)
            return self._emit(
                DocumentOutcome(key=document.key, status=OutcomeStatus.REJECTED, error=str(exc))
            )

        try:
            outcome = await self._summarize_segments(document, segments, config, started_at)
        except asyncio.CancelledError:
            LOGGER.warning("Summary run for %s cancelled", document.key)
            self.tracker.clear(document.key)
            self._emit(
                DocumentOutcome(key=document.key, status=OutcomeStatus.CANCELLED, error="Cancelled")
            )
            raise
        except Exception as exc:
            LOGGER.error("Failed to summarize %s: %s", document.key, exc)
            outcome = DocumentOutcome(key=document.key, status=OutcomeStatus.FAILED, error=str(exc))

        # Outcome is published before the progress entry goes away.
        self._emit(outcome)
        self.tracker.clear(document.key)
        return outcome

    async def _summarize_segments(
        self,
        document: Document,
        segments: Sequence[Segment],
        config: AppConfig,
        started_at: datetime,
    ) -> DocumentOutcome:
        LOGGER.info("Analyzing %s segments of %s", len(segments), document.key)
        summaries: List[str] = []
        for segment in segments:
            summary = await asyncio.to_thread(
                self.client.summarize,
                segment.text,
                config.model_id,
                prompt_prefix=config.assistant_prompt,
                system_prompt=config.system_prompt,
                max_tokens=config.max_tokens,
            )
            summaries.append(summary)
            self.tracker.mark_complete(document.key, segment.index)
            LOGGER.debug("Finished segment %s of %s", segment.index, document.key)

        text = join_summaries(
            summaries,
            prompt=config.assistant_prompt,
            include_prompt=config.include_prompt_in_output,
        )
        # Once the write is under way the document counts as summarized.
        write = asyncio.ensure_future(
            asyncio.to_thread(self.assembler.persist, document, started_at, text)
        )
        try:
            persisted = await asyncio.shield(write)
        except asyncio.CancelledError:
            LOGGER.warning("Cancel for %s arrived while saving; keeping the summary", document.key)
            persisted = await write
        return DocumentOutcome(
            key=document.key,
            status=OutcomeStatus.SUMMARIZED,
            summary=text,
            output_path=persisted.path,
            persist_error=persisted.error,
        )

    def _emit(self, outcome: DocumentOutcome) -> DocumentOutcome:
        if self.on_outcome is not None:
            try:
                self.on_outcome(outcome)
            except Exception:
                LOGGER.exception("Outcome listener failed for %s", outcome.key)
        return outcome
