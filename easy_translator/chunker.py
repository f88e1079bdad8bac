"""
Text chunking.

Splits text into pieces of at most ``chunk_size`` characters, preferring to cut
at natural boundaries. Only the last half of each window is searched, so a
boundary near the start of a window never produces a tiny chunk. Boundaries are
tried in order:

1. Paragraph break (double newline) - cut after it.
2. Sentence end (``.``, ``!`` or ``?`` followed by a space or newline) - cut
   before the whitespace, so the terminator stays with the preceding chunk.
3. Comma followed by a space - cut at the space.
4. Any space - cut after it.

If nothing matches the window is cut hard at ``chunk_size``. Joining the
returned chunks always gives back the input.
"""
from __future__ import annotations

from typing import List, Optional

from .errors import ChunkSplitError

SENTENCE_TERMINATORS = ".!?"
SENTENCE_FOLLOWERS = " \n"


def _find_paragraph_break(region: str) -> Optional[int]:
    idx = region.rfind("\n\n")
    return idx + 2 if idx != -1 else None


def _find_sentence_end(region: str) -> Optional[int]:
    for i in range(len(region) - 1, 0, -1):
        if region[i] in SENTENCE_FOLLOWERS and region[i - 1] in SENTENCE_TERMINATORS:
            return i
    return None


def _find_comma(region: str) -> Optional[int]:
    for i in range(len(region) - 1, 0, -1):
        if region[i] == " " and region[i - 1] == ",":
            return i
    return None


def _find_space(region: str) -> Optional[int]:
    idx = region.rfind(" ")
    return idx + 1 if idx != -1 else None


BREAK_FINDERS = (_find_paragraph_break, _find_sentence_end, _find_comma, _find_space)


def find_break_point(text: str, start: int, chunk_size: int) -> int:
    """Return the absolute offset where the chunk starting at ``start`` ends."""
    search_start = start + int(chunk_size * 0.5)
    search_end = start + chunk_size
    region = text[search_start:search_end]

    for finder in BREAK_FINDERS:
        offset = finder(region)
        if offset is not None:
            return search_start + offset

    # No boundary in range: hard cut, possibly mid-word.
    return search_end


def split_text_into_chunks(text: str, chunk_size: int) -> List[str]:
    if not isinstance(text, str):
        raise ChunkSplitError(f"Expected str input, got {type(text).__name__}")
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise ChunkSplitError(f"Chunk size must be a positive integer, got {chunk_size!r}")

    chunks: List[str] = []
    start = 0
    while start < len(text):
        if len(text) - start <= chunk_size:
            chunks.append(text[start:])
            break

        end = find_break_point(text, start, chunk_size)
        if end <= start:
            raise ChunkSplitError(f"Break point {end} does not advance past {start}")
        chunks.append(text[start:end])
        start = end

    return chunks
