"""Final output assembly from stored chunk records."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

from .errors import MissingRecord
from .store import ChunkRecord, ChunkStatus

logger = logging.getLogger(__name__)

CHUNK_SEPARATOR = "\n\n"


@dataclass
class AssemblyStats:
    total: int = 0
    success: int = 0
    failure: int = 0


def error_placeholder(sequence_number: int) -> str:
    return f"[TRANSLATION ERROR IN CHUNK {sequence_number + 1}]"


def missing_placeholder(sequence_number: int) -> str:
    return f"[MISSING CHUNK {sequence_number + 1}]"


def _lookup(by_sequence: Dict[int, ChunkRecord], sequence_number: int) -> ChunkRecord:
    try:
        return by_sequence[sequence_number]
    except KeyError:
        raise MissingRecord(sequence_number) from None


def assemble(records: Sequence[ChunkRecord]) -> Tuple[str, AssemblyStats]:
    """
    Join translated chunks in sequence order.

    Chunks that did not succeed are replaced by an inline placeholder so they
    stay visible in the output. Gaps in the sequence get a separate "missing"
    placeholder and are counted as failures.
    """
    by_sequence = {r.sequence_number: r for r in records}
    expected = max(len(records), max(by_sequence, default=-1) + 1)

    stats = AssemblyStats(total=expected)
    parts: List[str] = []
    for seq in range(expected):
        try:
            record = _lookup(by_sequence, seq)
        except MissingRecord as e:
            logger.warning(str(e))
            parts.append(missing_placeholder(seq))
            stats.failure += 1
            continue

        if record.status == ChunkStatus.SUCCESS and record.translated_text is not None:
            parts.append(record.translated_text.strip())
            stats.success += 1
        else:
            parts.append(error_placeholder(seq))
            stats.failure += 1

    return CHUNK_SEPARATOR.join(parts), stats


def write_output(path: Union[str, Path], text: str) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        f.write(text)
    return out
