"""
Recurring dispatch of READY submissions.

Each run picks up every READY submission and hands it to the transfer driver,
one at a time. Runs never overlap; the next run starts ``every_s`` seconds
after the previous one finished.
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass

from srasubmit.dispatch.driver import TransferDriver
from srasubmit.models import SubmissionStatus
from srasubmit.store import SubmissionStore
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.dispatch.scheduler")


@dataclass
class DispatchSummary:
    selected: int = 0
    submitted: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "selected": self.selected,
            "submitted": self.submitted,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": self.errors,
        }


class DispatchScheduler:
    """Drives the transfer driver over all READY submissions on an interval."""

    def __init__(
        self,
        store: SubmissionStore,
        driver: TransferDriver,
        *,
        every_s: float = 3600,
        initial_delay_s: float = 0,
    ):
        self.store = store
        self.driver = driver
        self.every_s = max(1.0, float(every_s))
        self.initial_delay_s = max(0.0, float(initial_delay_s))

        # Guards run_once across threads (loop thread vs. an ad-hoc call)
        self._run_guard = threading.Lock()
        self._run_lock = asyncio.Lock()
        self._stopping = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.last_summary: DispatchSummary | None = None

    def run_once(self) -> dict[str, int]:
        """
        Dispatch every READY submission once.

        A failure on one submission (including a store error while persisting
        its outcome) is logged and doesn't stop the others.
        """
        if not self._run_guard.acquire(blocking=False):
            logger.warning("Dispatch run already in progress, skipping")
            return DispatchSummary().to_dict()

        try:
            summary = DispatchSummary()
            pending = self.store.find_by_status(SubmissionStatus.READY)
            summary.selected = len(pending)
            if pending:
                logger.info(f"Dispatching {len(pending)} READY submission(s)")

            for submission in pending:
                if self._stopping.is_set():
                    logger.info("Dispatch stopping, leaving remaining submissions for the next run")
                    break
                try:
                    if submission.id is None or not self.store.claim(submission.id):
                        logger.debug(f"Submission {submission.id} claimed elsewhere, skipping")
                        summary.skipped += 1
                        continue
                    result = self.driver.submit(submission)
                except Exception as e:
                    logger.exception(f"Dispatch of submission {submission.id} aborted: {e}")
                    summary.errors += 1
                    continue

                if result.success:
                    summary.submitted += 1
                else:
                    summary.failed += 1

            self.last_summary = summary
            return summary.to_dict()
        finally:
            self._run_guard.release()

    async def run_forever(self) -> None:
        """Run dispatch passes until ``stop()`` is called."""
        self._stopping.clear()
        logger.info(f"Dispatch scheduler started (every {self.every_s:g}s, initial delay {self.initial_delay_s:g}s)")
        next_run = time.time() + self.initial_delay_s
        while not self._stopping.is_set():
            delay = next_run - time.time()
            if delay > 0:
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=delay)
                except TimeoutError:
                    pass
                continue

            async with self._run_lock:
                try:
                    # Transfers block on sockets; keep them off the event loop
                    summary = await asyncio.to_thread(self.run_once)
                    if summary["selected"]:
                        logger.info(f"Dispatch run finished: {summary}")
                except Exception as e:
                    logger.error(f"Dispatch run failed: {e}")
            next_run = time.time() + self.every_s
        logger.info("Dispatch scheduler stopped")

    def start(self) -> asyncio.Task:
        """Schedule ``run_forever`` on the running event loop."""
        self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        self._stopping.set()
        if self._task is not None:
            # No cancel: an in-flight transfer runs to completion
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
