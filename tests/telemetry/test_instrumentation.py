"""Telemetry instrumentation unit tests."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from seabattle.engine.combatant import create_combatant
from seabattle.engine.errors import AlreadyAttackedError, CollisionError
from seabattle.engine.game import Game
from seabattle.engine.vessel import create_vessel
from seabattle.telemetry import config as telemetry_config_module
from seabattle.telemetry import logger as logger_module
from seabattle.telemetry import metrics as metrics_module
from seabattle.telemetry import tracer as tracer_module
from seabattle.telemetry.config import TelemetryConfig


class DummySpan:
    def __init__(self, names: list[str], span_name: str) -> None:
        self._names = names
        self._names.append(span_name)
        self.attributes: dict[str, object] = {}
        self.exceptions: list[BaseException] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def set_attribute(self, key, value):
        self.attributes[key] = value

    def record_exception(self, exc):
        self.exceptions.append(exc)


class DummyTracer:
    def __init__(self) -> None:
        self.span_names: list[str] = []
        self.spans: list[DummySpan] = []

    def start_as_current_span(self, name: str):
        span = DummySpan(self.span_names, name)
        self.spans.append(span)
        return span


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SEABATTLE_ENABLE_TRACING",
        "SEABATTLE_ENABLE_METRICS",
        "SEABATTLE_ENABLE_LOGGING",
        "OTEL_TRACES_ENABLED",
        "OTEL_METRICS_ENABLED",
        "OTEL_LOGS_ENABLED",
        "OTEL_EXPORTER_OTLP_ENDPOINT",
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
        "OTEL_EXPORTER_OTLP_METRICS_ENDPOINT",
        "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT",
        "OTEL_SERVICE_NAME",
        "OTEL_SERVICE_NAMESPACE",
        "OTEL_RESOURCE_ATTRIBUTES",
    ):
        monkeypatch.delenv(name, raising=False)


def test_config_defaults_disable_everything() -> None:
    config = TelemetryConfig.from_env()
    assert not (config.enable_tracing or config.enable_metrics or config.enable_logging)
    assert config.service_name == "seabattle"
    assert config.otlp_traces_endpoint is None


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEABATTLE_ENABLE_LOGGING", "yes")
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4317/")
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT", "http://metrics:4317")
    monkeypatch.setenv("OTEL_SERVICE_NAME", "fleet")
    monkeypatch.setenv("OTEL_RESOURCE_ATTRIBUTES", "deployment.environment=test, team = games,broken")

    config = TelemetryConfig.from_env()

    assert config.enable_logging is True
    assert config.enable_tracing is True
    assert config.otlp_traces_endpoint == "http://collector:4317/v1/traces"
    assert config.otlp_metrics_endpoint == "http://metrics:4317"
    assert config.service_name == "fleet"
    assert config.resource_attributes == {"deployment.environment": "test", "team": "games"}
    assert config.resource_dict()["service.name"] == "fleet"


def test_config_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEABATTLE_ENABLE_METRICS", "1")
    config = TelemetryConfig.from_env(enable_metrics=False, service_namespace="tests")
    assert config.enable_metrics is False
    assert config.service_namespace == "tests"


def test_load_telemetry_config_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    telemetry_config_module.load_telemetry_config.cache_clear()
    calls = {"count": 0}

    def fake_from_env(cls, **overrides):
        calls["count"] += 1
        return TelemetryConfig(enable_tracing=True)

    monkeypatch.setattr(TelemetryConfig, "from_env", classmethod(fake_from_env))

    first = telemetry_config_module.load_telemetry_config()
    second = telemetry_config_module.load_telemetry_config()
    assert first is second
    assert calls["count"] == 1
    telemetry_config_module.load_telemetry_config.cache_clear()


def _patch_initialisers(monkeypatch: pytest.MonkeyPatch, calls: list[str]) -> None:
    monkeypatch.setattr(tracer_module, "init_tracing", lambda cfg: calls.append("tr"))
    monkeypatch.setattr(metrics_module, "init_metrics", lambda cfg: calls.append("me"))
    monkeypatch.setattr(logger_module, "init_logging", lambda cfg: calls.append("lo"))


def test_init_telemetry_noop(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []
    _patch_initialisers(monkeypatch, calls)
    telemetry_config_module.init_telemetry(TelemetryConfig())
    assert calls == []


def test_init_telemetry_respects_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []
    _patch_initialisers(monkeypatch, calls)
    config = TelemetryConfig(enable_tracing=True, enable_logging=True)
    assert telemetry_config_module.init_telemetry(config) is config
    assert calls == ["tr", "lo"]


def test_init_tracing_installs_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tracer_module, "_TRACER_PROVIDER", None)
    provider_instance = MagicMock()
    monkeypatch.setattr(tracer_module, "TracerProvider", MagicMock(return_value=provider_instance))
    exporter_cls = MagicMock(return_value=MagicMock())
    monkeypatch.setattr(tracer_module, "OTLPSpanExporter", exporter_cls)
    monkeypatch.setattr(tracer_module, "BatchSpanProcessor", MagicMock())
    set_provider = MagicMock()
    monkeypatch.setattr(tracer_module.trace, "set_tracer_provider", set_provider)

    provider = tracer_module.init_tracing(
        TelemetryConfig(enable_tracing=True, otlp_traces_endpoint="http://example")
    )

    assert provider is provider_instance
    exporter_cls.assert_called_once_with(endpoint="http://example", insecure=True)
    set_provider.assert_called_once_with(provider_instance)
    assert tracer_module.get_tracer("x") is provider_instance.get_tracer.return_value


def test_init_metrics_resets_game_counters(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(metrics_module, "_METER_PROVIDER", None)
    monkeypatch.setattr(metrics_module, "_GAME_METER", None)
    monkeypatch.setattr(metrics_module, "_INSTRUMENTS", {"stale": MagicMock()})
    meter_provider = MagicMock()
    monkeypatch.setattr(metrics_module, "MeterProvider", MagicMock(return_value=meter_provider))
    monkeypatch.setattr(metrics_module, "OTLPMetricExporter", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr(metrics_module, "PeriodicExportingMetricReader", MagicMock())
    monkeypatch.setattr(metrics_module.otel_metrics, "set_meter_provider", MagicMock())

    metrics_module.init_metrics(
        TelemetryConfig(enable_metrics=True, otlp_metrics_endpoint="http://example")
    )
    assert metrics_module._INSTRUMENTS == {}

    metrics_module.record_game_metric("seabattle_game_turns_total", 1, {"player": "A"})
    counter = meter_provider.get_meter.return_value.create_counter.return_value
    counter.add.assert_called_once_with(1, attributes={"player": "A"})
    metrics_module.record_game_metric("seabattle_game_turns_total", 2)
    assert meter_provider.get_meter.return_value.create_counter.call_count == 1


def test_root_handler_installed_once(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logger_module, "_HANDLER_INSTALLED", False)
    monkeypatch.setattr(logger_module, "_FILTER_INSTALLED", True)
    handler = logging.NullHandler()
    root = logging.getLogger()
    try:
        logger_module._install_root_handler(handler)
        logger_module._install_root_handler(handler)
        assert root.handlers.count(handler) == 1
    finally:
        root.removeHandler(handler)


def test_board_spans_and_logs(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    tracer = DummyTracer()
    monkeypatch.setattr("seabattle.engine.board.tracer", tracer)
    caplog.set_level(logging.INFO, logger="seabattle.engine.board")

    alice = create_combatant("Alice", "controlled")
    alice.place_vessel(create_vessel(2), (0, 0), "horizontal")
    with pytest.raises(CollisionError):
        alice.place_vessel(create_vessel(2), (0, 1), "vertical")

    assert tracer.span_names == ["board.place_vessel", "board.place_vessel"]
    assert isinstance(tracer.spans[1].exceptions[0], CollisionError)
    placed = [record for record in caplog.records if record.getMessage() == "vessel_placed"]
    assert placed and placed[0].owner == "Alice"
    assert placed[0].orientation == "HORIZONTAL"
    failed = [r for r in caplog.records if r.getMessage() == "vessel_placement_failed"]
    assert failed and failed[0].reason == "CollisionError"


def test_game_records_turn_metrics(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    metric_calls: list[tuple[str, float, dict | None]] = []
    monkeypatch.setattr("seabattle.engine.game.tracer", tracer)
    monkeypatch.setattr(
        "seabattle.engine.game.record_game_metric",
        lambda name, value, attrs=None: metric_calls.append((name, value, attrs)),
    )

    first = create_combatant("A", "controlled")
    second = create_combatant("B", "controlled")
    game = Game(first, second)
    game.place_vessel(first, create_vessel(1), (0, 0), "horizontal")
    game.place_vessel(second, create_vessel(1), (5, 5), "horizontal")
    game.start()

    game.play_turn((1, 1))
    game.play_turn((1, 1))
    with pytest.raises(AlreadyAttackedError):
        game.play_turn((1, 1))
    game.play_turn((5, 5))

    names = [name for name, _, _ in metric_calls]
    assert names.count("seabattle_game_turns_total") == 3
    assert "seabattle_game_invalid_turns_total" in names
    assert names[-1] == "seabattle_game_completed_total"
    assert metric_calls[-1][2] == {"winner": "A"}
    assert tracer.span_names == ["game.play_turn"] * 4
    assert tracer.spans[2].attributes["error"] is True
    assert tracer.spans[3].attributes["game.winner"] == "A"
