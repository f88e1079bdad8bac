"""
Batch scheduler.

Drains a work-list of chunk records through a translation client. Records are
processed in fixed-size batches: every record in a batch is translated
concurrently, and the next batch starts only once the whole batch, retries
included, has been committed to the store. A short pause separates batches.

Per-chunk failures are stored as data and never escape ``Scheduler.run``; only
``StoreError`` does.
"""
from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from .client import TranslationClient
from .errors import RateLimited, StoreError
from .store import ChunkRecord, StateDB

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


# ---------------------- Backoff ----------------------
class BackoffPolicy(abc.ABC):
    max_attempts: int

    @abc.abstractmethod
    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based) before the next one."""

    def should_retry(self, attempt: int) -> bool:
        return attempt < self.max_attempts


@dataclass
class FixedBackoff(BackoffPolicy):
    max_attempts: int = 2
    delay: float = 20.0

    def delay_for(self, attempt: int) -> float:
        return self.delay


@dataclass
class ExponentialBackoff(BackoffPolicy):
    max_attempts: int = 3
    base_delay: float = 2.0

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** (attempt - 1))


@dataclass
class BatchOutcome:
    succeeded: int = 0
    failed: int = 0


# ---------------------- Scheduler ----------------------
class Scheduler:
    def __init__(
        self,
        store: StateDB,
        client: TranslationClient,
        max_concurrent: int = 5,
        batch_delay: float = 1.0,
        backoff: Optional[BackoffPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_progress: Optional[ProgressCallback] = None,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.store = store
        self.client = client
        self.max_concurrent = max_concurrent
        self.batch_delay = batch_delay
        self.backoff = backoff or FixedBackoff()
        self.sleep = sleep
        self.on_progress = on_progress

    async def run(self, records: Sequence[ChunkRecord]) -> BatchOutcome:
        outcome = BatchOutcome()
        total = len(records)
        logger.info(f"Processing {total} chunks in batches of {self.max_concurrent}...")

        for i in range(0, total, self.max_concurrent):
            batch = records[i:i + self.max_concurrent]
            results = await asyncio.gather(*(self._process(r) for r in batch))
            outcome.succeeded += sum(1 for ok in results if ok)
            outcome.failed += sum(1 for ok in results if not ok)
            if self.on_progress:
                self.on_progress(outcome.succeeded + outcome.failed, total)

            if i + self.max_concurrent < total:
                await self.sleep(self.batch_delay)

        return outcome

    async def _process(self, record: ChunkRecord) -> bool:
        """Translate one record and commit the result. True on success."""
        logger.debug(f"Translating chunk {record.sequence_number + 1} ({len(record.source_text)} chars)...")
        attempt = 1
        while True:
            try:
                translated = await self.client.translate(record.source_text, record.source_lang, record.target_lang)
            except StoreError:
                raise
            except RateLimited as e:
                if self.backoff.should_retry(attempt):
                    wait = self.backoff.delay_for(attempt)
                    logger.warning(f"Rate limit hit on chunk {record.sequence_number + 1}, waiting {wait:.0f}s...")
                    await self.sleep(wait)
                    attempt += 1
                    continue
                return self._fail(record, e)
            except Exception as e:
                return self._fail(record, e)

            self.store.record_success(record.id, translated)
            return True

    def _fail(self, record: ChunkRecord, error: Exception) -> bool:
        message = str(error) or type(error).__name__
        logger.error(f"Chunk {record.sequence_number + 1} failed: {message}")
        self.store.record_failure(record.id, message)
        return False
