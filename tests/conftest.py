"""Shared fixtures: in-memory storage instead of mocks."""

import pytest

from homebudget.audit import AuditLogger
from homebudget.services.storage import InMemoryEventSink, InMemorySnapshotStorage
from homebudget.store import StateStore


@pytest.fixture
def storage():
    return InMemorySnapshotStorage()


@pytest.fixture
def event_sink():
    return InMemoryEventSink()


@pytest.fixture
def audit_logger(event_sink):
    return AuditLogger(event_sink)


@pytest.fixture
def store(storage, audit_logger):
    return StateStore(storage, audit_logger=audit_logger)
