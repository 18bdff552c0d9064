"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It selects the testing environment before any settings are imported and
provides in-memory doubles for the source and store interfaces.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from pathlib import PurePosixPath

import pytest

from nif_lookup.adapters.sources.base import AbstractSourceAdapter, source_unavailable
from nif_lookup.adapters.storage.base import AbstractRecordStore
from nif_lookup.core.errors import StoreAppError
from nif_lookup.schemas.record import PartialRecord


class FakeSource(AbstractSourceAdapter):
    """Source double returning a fixed record or failing like a real adapter."""

    def __init__(self, name: str, record: PartialRecord | None = None, fail: bool = False) -> None:
        self.name = name
        self.record = record if record is not None else PartialRecord()
        self.fail = fail
        self.calls: list[str] = []

    async def fetch(self, nif: str) -> PartialRecord:
        self.calls.append(nif)
        if self.fail:
            raise source_unavailable(self.name, nif, ConnectionError("connection refused"))
        return self.record


class MemoryStore(AbstractRecordStore):
    """Dict-backed store that can be told to fail reads or writes."""

    def __init__(self) -> None:
        self.files: dict[PurePosixPath, bytes] = {}
        self.directories: list[PurePosixPath] = []
        self.fail_reads = False
        self.fail_writes = False

    async def read(self, path: PurePosixPath) -> bytes | None:
        if self.fail_reads:
            raise StoreAppError(code="store_read_failed", message="disk on fire")
        return self.files.get(path)

    async def write(self, path: PurePosixPath, data: bytes) -> None:
        if self.fail_writes:
            raise StoreAppError(code="store_write_failed", message="disk full")
        self.files[path] = data

    async def ensure_directory(self, path: PurePosixPath) -> None:
        self.directories.append(path)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_source():
    """Factory fixture: ``make_source("racius", name="Foo")`` or ``make_source("racius", fail=True)``."""

    def _make(source_name: str, *, fail: bool = False, **fields) -> FakeSource:
        return FakeSource(source_name, PartialRecord.model_validate(fields), fail=fail)

    return _make
