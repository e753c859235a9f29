"""Service test fixtures — stores, blob stores and the intake pipeline.

Design Decisions:
    - sql_store runs against the root conftest's in-memory SQLite database
    - memory_store/memory_blobs are fakes (tests/fakes.py) for tests that need
      real interleaving or failure injection
"""

import pytest

from campus_print.services.order_store import SqlOrderStore
from campus_print.services.page_counter import PageCounter
from campus_print.services.upload_intake import UploadIntake
from tests.fakes import InMemoryBlobStore, InMemoryOrderStore


@pytest.fixture
def sql_store(test_db_manager):
    return SqlOrderStore(test_db_manager)


@pytest.fixture
def memory_store():
    return InMemoryOrderStore()


@pytest.fixture
def memory_blobs():
    return InMemoryBlobStore()


@pytest.fixture
def page_counter(memory_blobs):
    counter = PageCounter(memory_blobs, timeout_seconds=10.0, max_pages=50, workers=2)
    yield counter
    counter.close()


@pytest.fixture
def intake(memory_blobs, page_counter):
    return UploadIntake(
        memory_blobs,
        page_counter,
        namespace="campus_print",
        max_file_size_bytes=64 * 1024,
        timeout_seconds=10.0,
    )
