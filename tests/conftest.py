"""
Shared fixtures for the translator test suite.

Provides: temporary job stores, deterministic fake translation clients and a
recording replacement for asyncio.sleep so no test waits on real time.
"""

import asyncio
from typing import Callable, Dict, List, Optional

import pytest

from easy_translator.client import TranslationClient
from easy_translator.store import StateDB


class FakeTranslationClient(TranslationClient):
    """
    Deterministic client: translation is the upper-cased source text.

    ``failures`` maps source text to a list of exceptions raised on successive
    calls for that text; once exhausted the call succeeds. ``delays`` maps
    source text to a real (tiny) await so completion order can be shuffled.
    """

    def __init__(
        self,
        failures: Optional[Dict[str, List[Exception]]] = None,
        delays: Optional[Dict[str, float]] = None,
        transform: Callable[[str], str] = str.upper,
    ):
        self.failures = {k: list(v) for k, v in (failures or {}).items()}
        self.delays = delays or {}
        self.transform = transform
        self.calls: List[str] = []
        self.completed: List[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append(text)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(text, 0))
            pending = self.failures.get(text)
            if pending:
                raise pending.pop(0)
            self.completed.append(text)
            return self.transform(text)
        finally:
            self.in_flight -= 1


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "job.db"


@pytest.fixture
def store(db_path):
    db = StateDB(db_path)
    yield db
    db.close()


@pytest.fixture
def fake_client() -> FakeTranslationClient:
    return FakeTranslationClient()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()
