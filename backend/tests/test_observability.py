"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

import pytest

from habitloop.core.config import settings
from habitloop.observability import client as client_module
from habitloop.observability.tracing import trace


class _DummyTrace:
    def __init__(self, name, metadata=None):
        self.name = name
        self.metadata = metadata or {}
        self.error_info = None
        self.ended = False

    def update(self, error_info=None, **kwargs):
        self.error_info = error_info

    def end(self):
        self.ended = True


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.traces = []

    def trace(self, name, metadata=None, **kwargs):
        created = _DummyTrace(name, metadata)
        self.traces.append(created)
        return created


@pytest.fixture()
def opik_enabled(monkeypatch):
    monkeypatch.setattr(settings, "opik_enabled", True)
    monkeypatch.setattr(settings, "opik_api_key", "test-key")
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    client_module.reset_opik_client()
    yield
    client_module.reset_opik_client()


def test_client_is_none_when_disabled(monkeypatch) -> None:
    monkeypatch.setattr(settings, "opik_enabled", False)
    client_module.reset_opik_client()

    assert client_module.get_opik_client() is None
    with trace("engine.noop") as opik_trace:
        assert opik_trace is None


def test_missing_api_key_keeps_tracing_off(monkeypatch) -> None:
    monkeypatch.setattr(settings, "opik_enabled", True)
    monkeypatch.setattr(settings, "opik_api_key", None)
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    client_module.reset_opik_client()
    try:
        assert client_module.init_opik() is None
    finally:
        client_module.reset_opik_client()


def test_trace_records_metadata_and_closes(opik_enabled) -> None:
    client = client_module.get_opik_client()
    assert isinstance(client, _DummyOpik)
    assert client.kwargs["project_name"] == settings.opik_project

    with trace("agenda.create", metadata={"type": "NUMERIC", "skip": None}, user_id="u1", request_id="r1"):
        pass

    recorded = client.traces[-1]
    assert recorded.name == "agenda.create"
    assert recorded.metadata == {"type": "NUMERIC", "user_id": "u1", "request_id": "r1"}
    assert recorded.ended is True


def test_trace_attaches_errors_and_reraises(opik_enabled) -> None:
    client = client_module.get_opik_client()

    with pytest.raises(ValueError):
        with trace("sync.run"):
            raise ValueError("bad snapshot")

    assert client.traces[-1].error_info == {"exception_type": "ValueError", "message": "bad snapshot"}
    assert client.traces[-1].ended is True
