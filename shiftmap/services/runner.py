"""
services/runner.py
──────────────────────────────────────────────────────────────────────────────
Drives the TieredResolver over one input or a whole batch.

Batch mode:
  - Inputs are dispatched to a bounded thread pool (BATCH_WORKERS); each
    resolution is still a strictly sequential chain of provider calls.
  - Outcomes are joined and stored positionally, so output order always
    matches input order regardless of completion order.
  - A failure is recorded on that input's BatchOutcome and never aborts
    the other resolutions.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from shiftmap.config.settings import Settings
from shiftmap.domain.models import ActivityEntry, BatchOutcome, MappingVerdict
from shiftmap.services.resolver import TieredResolver

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ResolutionRunner:
    """Single-entry and batch front end to the resolver.

    Args:
        resolver: TieredResolver to drive.
        settings: Supplies the batch worker count.
    """

    def __init__(self, resolver: TieredResolver, settings: Settings) -> None:
        self._resolver = resolver
        self._workers = settings.batch_workers

    @property
    def resolver(self) -> TieredResolver:
        return self._resolver

    def run_one(self, text: str) -> MappingVerdict:
        """Validate and resolve one entry.

        Raises:
            pydantic.ValidationError: For blank input.
            ShiftMapError: Whatever the resolver raises.
        """
        ActivityEntry(text=text)
        return self._resolver.resolve(text)

    def run_batch(
        self,
        inputs: Sequence[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[BatchOutcome]:
        """Resolve every input concurrently; one outcome per input, in order.

        Args:
            inputs:      Raw activity strings.
            on_progress: Called as ``on_progress(done, total)`` after each
                         input finishes (from the calling thread).
        """
        total = len(inputs)
        if total == 0:
            return []

        logger.info("Batch start | inputs=%d workers=%d", total, self._workers)
        slots: list[BatchOutcome | None] = [None] * total

        with ThreadPoolExecutor(
            max_workers=min(self._workers, total),
            thread_name_prefix="shiftmap-resolve",
        ) as pool:
            futures = {pool.submit(self.run_one, text): i for i, text in enumerate(inputs)}
            for done, future in enumerate(as_completed(futures), 1):
                i = futures[future]
                try:
                    slots[i] = BatchOutcome(index=i, input=inputs[i], verdict=future.result())
                except Exception as exc:
                    logger.error("Resolution failed for input #%d %r: %s", i, inputs[i][:80], exc)
                    slots[i] = BatchOutcome(
                        index=i,
                        input=inputs[i],
                        error=f"{type(exc).__name__}: {exc}",
                    )
                if on_progress is not None:
                    on_progress(done, total)

        outcomes = [slot for slot in slots if slot is not None]
        failed = sum(1 for o in outcomes if not o.ok)
        logger.info("Batch complete | total=%d failed=%d", total, failed)
        return outcomes
