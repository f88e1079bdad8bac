"""
Command line entry point.

Usage:
  easy-translator INPUT OUTPUT [SOURCE_LANG] [TARGET_LANG] [--config config.yaml]

If a run is interrupted, run the same command again: progress is kept in a
.db file next to the input (or at --db-path) and only unfinished chunks are
translated.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .client import DryRunTranslationClient, OpenAITranslationClient, TranslationClient, build_llm
from .config import AppConfig
from .errors import ChunkSplitError, ConfigError, StoreError
from .runner import JobOptions, translate_file
from .scheduler import FixedBackoff
from .store import default_db_path

logger = logging.getLogger(__package__)


# ---------------------- Logging ----------------------
def setup_logging(level: int = logging.INFO) -> None:
    # Repeated calls rebind to the current stdout instead of stacking handlers
    for old in list(logger.handlers):
        logger.removeHandler(old)
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s", "%H:%M:%S")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level)


# ---------------------- Progress ----------------------
def _format_eta(seconds: float) -> str:
    # Format seconds into H:MM:SS
    seconds = max(0, int(seconds))
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


def print_progress(done: int, total: int, start_time: float, prefix: str = "Progress") -> None:
    """
    Render a single-line progress bar to stdout.
    Shows percentage, bar, counts, and ETA.
    """
    total = max(total, 1)
    done = min(max(done, 0), total)
    elapsed = time.time() - start_time
    rate = done / elapsed if elapsed > 0 else 0.0
    remaining = total - done
    eta = (remaining / rate) if rate > 0 else 0.0
    width = 30
    pct = done / total
    filled = int(width * pct)
    bar = "█" * filled + "-" * (width - filled)
    msg = f"\r{prefix} |{bar}| {pct*100:5.1f}% ({done}/{total}) ETA {_format_eta(eta)}"
    if done == total:
        msg += "\n"
    sys.stdout.write(msg)
    sys.stdout.flush()


# ---------------------- CLI ----------------------
def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="easy-translator",
        description="Translate large text files with OpenAI, chunk by chunk, with resume.",
    )
    p.add_argument("input", help="Path to the file to translate")
    p.add_argument("output", help="Path for the translated output")
    p.add_argument("source_lang", nargs="?", default=None, help="Source language (default: auto)")
    p.add_argument("target_lang", nargs="?", default=None, help="Target language (default: English)")
    p.add_argument("--config", help="Path to config file (YAML or JSON)")

    # LLM params
    p.add_argument("--model", help="OpenAI model name (e.g., gpt-4o-mini)")
    p.add_argument("--temperature", type=float, help="Sampling temperature")
    p.add_argument("--reasoning-effort", dest="reasoning_effort", help="Reasoning effort for reasoning models; replaces temperature")
    p.add_argument("--max-tokens", dest="max_tokens", type=int, help="Max tokens for response")
    p.add_argument("--top-p", dest="top_p", type=float, help="Top-p nucleus sampling")
    p.add_argument("--frequency-penalty", dest="frequency_penalty", type=float, help="Frequency penalty")
    p.add_argument("--presence-penalty", dest="presence_penalty", type=float, help="Presence penalty")
    p.add_argument("--request-timeout", dest="request_timeout", type=int, help="Request timeout (s)")
    p.add_argument("--base-url", dest="base_url", help="OpenAI-compatible API base URL")
    p.add_argument("--prompt", help="Custom translation instruction, used instead of the built-in one")

    # Splitting & scheduling
    p.add_argument("--chunk-size", dest="chunk_size", type=int, help="Chunk size in characters (default: 4000)")
    p.add_argument("--max-concurrent", dest="max_concurrent", type=int, help="Concurrent requests per batch (default: 5)")
    p.add_argument("--batch-delay", dest="batch_delay", type=float, help="Pause between batches in seconds (default: 1)")
    p.add_argument("--rate-limit-wait", dest="rate_limit_wait", type=float, help="Wait before retrying a rate-limited chunk (default: 20)")

    # Runtime & resume
    p.add_argument("--db-path", dest="db_path", help="Path to the job state DB (default: <input>.db)")
    p.add_argument("--clear", action="store_true", help="Discard saved progress and start over")
    p.add_argument("--no-retry-failed", dest="no_retry_failed", action="store_true", help="On resume, only process pending chunks")
    p.add_argument("--dry-run", dest="dry_run", action="store_true", help="Split and assemble without calling the LLM; nothing is saved for resume")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return p


def build_client(cfg: AppConfig) -> TranslationClient:
    if cfg.runtime.dry_run:
        return DryRunTranslationClient()
    return OpenAITranslationClient(build_llm(cfg.llm), prompt=cfg.llm.prompt)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        cfg = AppConfig.from_files_and_args(args.config, args)
    except ConfigError as e:
        logger.error(str(e))
        return 3

    input_path = Path(cfg.runtime.input).expanduser().resolve()
    if not input_path.exists():
        logger.error(f"Input file not found: {input_path}")
        return 2
    output_path = Path(cfg.runtime.output).expanduser().resolve()
    db_path = Path(cfg.runtime.db_path).expanduser().resolve() if cfg.runtime.db_path else default_db_path(input_path)

    logger.info(f"Input:  {input_path}")
    logger.info(f"Output: {output_path}")
    logger.info(f"Languages: {cfg.runtime.source_lang} -> {cfg.runtime.target_lang}")
    logger.info(f"Model: {cfg.llm.model}{' (dry run)' if cfg.runtime.dry_run else ''}")
    logger.info(f"Chunk size: {cfg.split.chunk_size} chars | concurrent requests: {cfg.runtime.max_concurrent}")

    try:
        client = build_client(cfg)
    except Exception as e:
        logger.exception(f"Failed to initialize LLM: {e}")
        return 3

    options = JobOptions(
        chunk_size=cfg.split.chunk_size,
        max_concurrent=cfg.runtime.max_concurrent,
        clear_existing=cfg.runtime.clear,
        retry_failed=cfg.runtime.retry_failed,
        batch_delay=cfg.runtime.batch_delay,
        backoff=FixedBackoff(max_attempts=cfg.runtime.max_attempts, delay=cfg.runtime.rate_limit_wait),
    )

    start_time = time.time()
    try:
        stats = asyncio.run(
            translate_file(
                input_path,
                output_path,
                cfg.runtime.source_lang,
                cfg.runtime.target_lang,
                client,
                db_path=db_path,
                options=options,
                on_progress=lambda done, total: print_progress(done, total, start_time),
            )
        )
    except ChunkSplitError as e:
        logger.error(str(e))
        return 3
    except StoreError as e:
        logger.error(str(e))
        return 4
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read input or write output: {e}")
        return 2
    elapsed = time.time() - start_time

    logger.info(f"Successful: {stats.success}/{stats.total} chunks in {elapsed:.1f}s")
    logger.info(f"Output saved to: {output_path}")
    if not cfg.runtime.dry_run:
        logger.info(f"Database saved to: {db_path} (for resume)")
    if stats.failure > 0:
        logger.warning(f"Failed: {stats.failure} chunks. Run the same command again to retry them.")
        return 1
    return 0
