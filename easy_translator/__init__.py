"""Translate large text files through an LLM, chunk by chunk, with resume."""

from .assembler import AssemblyStats, assemble
from .chunker import split_text_into_chunks
from .client import DryRunTranslationClient, OpenAITranslationClient, TranslationClient
from .errors import (
    ChunkSplitError,
    ConfigError,
    MissingRecord,
    RateLimited,
    StoreError,
    TranslationError,
    TranslatorError,
)
from .runner import JobOptions, run_job, translate_file, translate_text
from .scheduler import ExponentialBackoff, FixedBackoff, Scheduler
from .store import ChunkRecord, ChunkStatus, JobStats, StateDB

__all__ = [
    "AssemblyStats",
    "ChunkRecord",
    "ChunkSplitError",
    "ChunkStatus",
    "ConfigError",
    "DryRunTranslationClient",
    "ExponentialBackoff",
    "FixedBackoff",
    "JobOptions",
    "JobStats",
    "MissingRecord",
    "OpenAITranslationClient",
    "RateLimited",
    "Scheduler",
    "StateDB",
    "StoreError",
    "TranslationClient",
    "TranslationError",
    "TranslatorError",
    "assemble",
    "run_job",
    "split_text_into_chunks",
    "translate_file",
    "translate_text",
]
