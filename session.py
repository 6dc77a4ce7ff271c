"""Per-upload analysis session: latest records, latest report, readiness signal."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import TYPE_CHECKING

from models import Record

if TYPE_CHECKING:
    from models import AnalysisReport

logger = logging.getLogger(__name__)


class AnalysisSession:
    """
    Owner of the data shared between the pipeline and its consumers.

    One session per upload. ``ready`` is resolved exactly once, by the
    assembler, with the finished report (or with the error that aborted
    the run); consumers wait on it instead of polling.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.records: list[Record] | None = None
        self.report: "AnalysisReport | None" = None
        self.ready: Future = Future()

    @classmethod
    def create(cls) -> "AnalysisSession":
        return cls()

    def set_records(self, records: list[Record]) -> None:
        with self._lock:
            self.records = list(records)

    def publish(self, report: "AnalysisReport") -> None:
        """Store the assembled report and resolve readiness (first call wins)."""
        with self._lock:
            self.report = report
            if not self.ready.done():
                self.ready.set_result(report)

    def fail(self, exc: BaseException) -> None:
        """Clear cached data and resolve readiness with the error."""
        self.clear()
        with self._lock:
            if not self.ready.done():
                self.ready.set_exception(exc)

    def clear(self) -> None:
        with self._lock:
            self.records = None
            self.report = None
        logger.info("[Session] cache cleared")

    def wait_report(self, timeout: float | None = None) -> "AnalysisReport":
        return self.ready.result(timeout=timeout)

    @property
    def is_ready(self) -> bool:
        return self.ready.done() and self.ready.exception() is None
