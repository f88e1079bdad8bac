"""
End-to-end job: split, seed or resume, translate, assemble.

The job store is the checkpoint. A fresh run seeds it from a new split; a
later run against the same store only processes what is left.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from .assembler import AssemblyStats, assemble, write_output
from .chunker import split_text_into_chunks
from .client import TranslationClient
from .scheduler import BackoffPolicy, ProgressCallback, Scheduler
from .store import MEMORY_DB, StateDB, default_db_path

logger = logging.getLogger(__name__)

OutputSink = Callable[[str], object]


@dataclass
class JobOptions:
    chunk_size: int = 4000
    max_concurrent: int = 5
    clear_existing: bool = False
    # Retry chunks that failed on a previous run, not only pending ones
    retry_failed: bool = True
    batch_delay: float = 1.0
    backoff: Optional[BackoffPolicy] = None


async def translate_text(
    input_text: str,
    output_sink: OutputSink,
    source_lang: str,
    target_lang: str,
    client: TranslationClient,
    db_path: Union[str, Path],
    options: Optional[JobOptions] = None,
    on_progress: Optional[ProgressCallback] = None,
    sleep: Callable = asyncio.sleep,
) -> AssemblyStats:
    opts = options or JobOptions()
    if client.dry_run:
        logger.info("Dry run: progress is kept in memory only")
        db_path = MEMORY_DB

    with StateDB(db_path) as store:
        scheduler = Scheduler(
            store,
            client,
            max_concurrent=opts.max_concurrent,
            batch_delay=opts.batch_delay,
            backoff=opts.backoff,
            sleep=sleep,
            on_progress=on_progress,
        )
        stats = store.stats()

        if stats.total > 0 and not opts.clear_existing:
            logger.info(f"Found existing progress: {stats.success}/{stats.total} completed")
            settings = store.job_settings()
            if settings and settings != (source_lang, target_lang, opts.chunk_size):
                logger.warning(
                    f"Resuming job seeded with {settings[0]} -> {settings[1]}, chunk size {settings[2]}; "
                    f"requested settings are ignored. Use clear to start over."
                )
            if stats.needs_work(opts.retry_failed):
                work = store.pending_and_failed() if opts.retry_failed else store.pending()
                logger.info(f"Resuming: {stats.pending} pending, {stats.failure} failed")
                await scheduler.run(work)
        else:
            chunks = split_text_into_chunks(input_text, opts.chunk_size)
            logger.info(f"Split into {len(chunks)} chunks")
            store.seed(chunks, source_lang, target_lang, opts.chunk_size)
            await scheduler.run(store.pending())

        logger.info("Generating output...")
        text, final_stats = assemble(store.all_in_sequence_order())

    output_sink(text)
    return final_stats


def run_job(
    input_text: str,
    output_sink: OutputSink,
    source_lang: str,
    target_lang: str,
    client: TranslationClient,
    db_path: Union[str, Path],
    options: Optional[JobOptions] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> AssemblyStats:
    """Blocking wrapper around :func:`translate_text`."""
    return asyncio.run(
        translate_text(input_text, output_sink, source_lang, target_lang, client, db_path, options, on_progress)
    )


async def translate_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    source_lang: str,
    target_lang: str,
    client: TranslationClient,
    db_path: Optional[Union[str, Path]] = None,
    options: Optional[JobOptions] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> AssemblyStats:
    input_path = Path(input_path)
    with input_path.open("r", encoding="utf-8") as f:
        text = f.read()
    logger.info(f"File size: {len(text):,} characters")

    return await translate_text(
        text,
        lambda translated: write_output(output_path, translated),
        source_lang,
        target_lang,
        client,
        db_path or default_db_path(input_path),
        options,
        on_progress,
    )
