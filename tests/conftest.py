"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from autoreload.ports import MemoryToggleHost
from autoreload.watching.fingerprint import Fingerprinter
from tests.utils import FakeClock, FakeStorage


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fingerprinter() -> Fingerprinter:
    return Fingerprinter()


@pytest.fixture
def toggles() -> MemoryToggleHost:
    return MemoryToggleHost()
