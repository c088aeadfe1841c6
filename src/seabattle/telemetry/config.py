"""Telemetry configuration loaded from the environment."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}

_FLAG_ENV = {
    "enable_tracing": ("SEABATTLE_ENABLE_TRACING", "OTEL_TRACES_ENABLED"),
    "enable_metrics": ("SEABATTLE_ENABLE_METRICS", "OTEL_METRICS_ENABLED"),
    "enable_logging": ("SEABATTLE_ENABLE_LOGGING", "OTEL_LOGS_ENABLED"),
}

_SIGNALS = {
    "otlp_traces_endpoint": ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "v1/traces", "enable_tracing"),
    "otlp_metrics_endpoint": ("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT", "v1/metrics", "enable_metrics"),
    "otlp_logs_endpoint": ("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT", "v1/logs", "enable_logging"),
}


class TelemetryConfig(BaseModel):
    """Which OpenTelemetry signals to export, and where."""

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False
    otlp_traces_endpoint: str | None = None
    otlp_metrics_endpoint: str | None = None
    otlp_logs_endpoint: str | None = None
    service_name: str = "seabattle"
    service_namespace: str = "game"
    resource_attributes: dict[str, str] = Field(default_factory=dict)

    def resource_dict(self) -> dict[str, str]:
        attributes = {
            "service.name": self.service_name,
            "service.namespace": self.service_namespace,
        }
        attributes.update(self.resource_attributes)
        return attributes

    @classmethod
    def from_env(cls, **overrides: Any) -> TelemetryConfig:
        """Build a config from `SEABATTLE_*` and standard `OTEL_*` variables.

        Explicit ``overrides`` win over the environment. A signal with an
        endpoint configured is enabled automatically.
        """
        data: dict[str, Any] = cls().model_dump()

        for field_name, env_names in _FLAG_ENV.items():
            for env_name in env_names:
                value = os.getenv(env_name)
                if value is not None:
                    data[field_name] = value.strip().lower() in _TRUTHY
                    break

        base_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        for field_name, (env_name, suffix, _) in _SIGNALS.items():
            endpoint = os.getenv(env_name)
            if not endpoint and base_endpoint:
                endpoint = f"{base_endpoint.rstrip('/')}/{suffix}"
            data[field_name] = endpoint

        if os.getenv("OTEL_SERVICE_NAME"):
            data["service_name"] = os.environ["OTEL_SERVICE_NAME"]
        if os.getenv("OTEL_SERVICE_NAMESPACE"):
            data["service_namespace"] = os.environ["OTEL_SERVICE_NAMESPACE"]

        resource_env = os.getenv("OTEL_RESOURCE_ATTRIBUTES")
        if resource_env:
            attrs = dict(data["resource_attributes"])
            for part in resource_env.split(","):
                if "=" not in part:
                    continue
                key, value = part.split("=", 1)
                attrs[key.strip()] = value.strip()
            data["resource_attributes"] = attrs

        data.update(overrides)

        for field_name, (_, _, flag) in _SIGNALS.items():
            if data.get(field_name):
                data[flag] = True

        return cls(**data)


@lru_cache(maxsize=1)
def load_telemetry_config() -> TelemetryConfig:
    """Load and cache telemetry config from the environment."""

    return TelemetryConfig.from_env()


def init_telemetry(config: TelemetryConfig | None = None) -> TelemetryConfig:
    """Initialise only the signals the config enables."""

    from .logger import init_logging
    from .metrics import init_metrics
    from .tracer import init_tracing

    resolved = config or load_telemetry_config()

    if resolved.enable_tracing:
        init_tracing(resolved)
    if resolved.enable_metrics:
        init_metrics(resolved)
    if resolved.enable_logging:
        init_logging(resolved)
    return resolved
