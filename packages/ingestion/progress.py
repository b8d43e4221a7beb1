"""Progress reporting for statement parsing and imports."""

from typing import Callable, Optional

import structlog

from .models import ParseProgress

logger = structlog.get_logger()

ProgressCallback = Callable[[ParseProgress], None]

# "saving" is only reported by the import pipeline while persisting batches
STAGES = ("detecting", "reading", "parsing", "validating", "saving", "complete")


class ProgressTracker:
    """Tracks row progress and forwards snapshots to an optional callback.

    Stage changes are always reported. Row updates during ``parsing`` are
    throttled to one event per 10% of ``total`` rows.
    """

    def __init__(self, total: int = 0, callback: Optional[ProgressCallback] = None):
        self.total = total
        self.callback = callback
        self.rows_processed = 0
        self.transactions_found = 0
        self.skipped_rows = 0
        self.stage = "detecting"
        self.last_percent = -1

    def _emit(self, message: str) -> None:
        snapshot = ParseProgress(
            stage=self.stage,
            rows_processed=self.rows_processed,
            transactions_found=self.transactions_found,
            skipped_rows=self.skipped_rows,
            message=message,
        )
        if self.callback:
            self.callback(snapshot)
        else:
            logger.debug("parse_progress", stage=self.stage, rows=self.rows_processed, message=message)

    def report(self, stage: str, message: str = "") -> None:
        """Switch to ``stage`` and report it."""
        if stage not in STAGES:
            raise ValueError(f"Unknown progress stage: {stage}")
        self.stage = stage
        self._emit(message)

    def update(self, found: int = 0, skipped: int = 0, increment: int = 1) -> None:
        """Advance the row counter, reporting every 10% of the total."""
        self.rows_processed += increment
        self.transactions_found += found
        self.skipped_rows += skipped

        if not self.total:
            return
        percent = int((self.rows_processed / self.total) * 100)
        if percent != self.last_percent and percent % 10 == 0:
            self.last_percent = percent
            self._emit(f"Processing: {percent}%")

    def finish(self, message: str = "Parsing complete!") -> None:
        self.report("complete", message)
