"""Tests for metrics helpers."""
from __future__ import annotations

from typing import Any, Dict

from habitloop.observability import client as client_module
from habitloop.observability import metrics


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.ended = False

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(client_module, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("sync.latency_ms", 42, metadata={"provider": "file"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].name == "metric:sync.latency_ms"
    assert dummy_client.traces[0].metadata == {"provider": "file", "value": 42}
    assert dummy_client.traces[0].ended is True


def test_log_metric_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(client_module, "get_opik_client", lambda: None)
    metrics.log_metric("anything", 1)
