"""Thread-safe per-document segment progress."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

LOGGER = logging.getLogger(__name__)

ProgressEntry = Dict[int, bool]
ProgressListener = Callable[[str, Optional[ProgressEntry]], None]


class DocumentBusyError(RuntimeError):
    """Raised when a document already has a run in flight."""


class ProgressTracker:
    """Maps document keys to per-segment completion flags.

    A key is present only while that document's run is in flight. Every
    mutation happens under one lock and readers always get copies, so an
    observer never sees a half-applied update. Listeners are called after
    the lock is released with the key and a copy of its entry (``None``
    once the entry is cleared).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, ProgressEntry] = {}
        self._listeners: List[ProgressListener] = []

    def begin(self, key: str, segment_count: int) -> None:
        with self._lock:
            if key in self._entries:
                raise DocumentBusyError(f"{key} is already being processed")
            entry = {index: False for index in range(segment_count)}
            self._entries[key] = entry
            snapshot = dict(entry)
        self._notify(key, snapshot)

    def mark_complete(self, key: str, index: int) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or index not in entry:
                raise KeyError(f"No in-flight segment {index} for {key}")
            entry[index] = True
            snapshot = dict(entry)
        self._notify(key, snapshot)

    def clear(self, key: str) -> None:
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            self._notify(key, None)

    def get(self, key: str) -> Optional[ProgressEntry]:
        with self._lock:
            entry = self._entries.get(key)
            return dict(entry) if entry is not None else None

    def is_running(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def snapshot(self) -> Dict[str, ProgressEntry]:
        with self._lock:
            return {key: dict(entry) for key, entry in self._entries.items()}

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a change listener and return a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, entry: Optional[ProgressEntry]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(key, dict(entry) if entry is not None else None)
            except Exception:
                LOGGER.exception("Progress listener failed for %s", key)
