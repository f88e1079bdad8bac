"""Exception types raised by the translator."""
from __future__ import annotations


class TranslatorError(Exception):
    """Base class for all translator errors."""


class ChunkSplitError(TranslatorError):
    """Input could not be split (bad text or chunk size)."""


class TranslationError(TranslatorError):
    """A chunk translation attempt failed."""


class RateLimited(TranslationError):
    """Upstream signalled throttling (HTTP 429). Retried by the scheduler."""


class StoreError(TranslatorError):
    """The job store could not be read or written. Fatal for the whole job."""


class MissingRecord(TranslatorError):
    """A sequence number has no record at assembly time."""

    def __init__(self, sequence_number: int):
        super().__init__(f"No record for chunk {sequence_number + 1}")
        self.sequence_number = sequence_number


class ConfigError(TranslatorError):
    """Configuration file could not be loaded or parsed."""
