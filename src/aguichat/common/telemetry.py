"""
OpenTelemetry Setup.

Tracers and meters come from the OpenTelemetry API, which is a no-op until
init_telemetry() installs SDK providers. Library code can therefore create
spans and counters unconditionally.

Usage:
    from aguichat.common.telemetry import get_tracer

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("llm.chat") as span:
        span.set_attribute("llm.model", model)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import metrics, trace

logger = logging.getLogger(__name__)

_telemetry_initialized = False
_tracer_provider: Any = None
_meter_provider: Any = None


@dataclass
class TelemetryConfig:
    """Configuration for telemetry setup."""

    service_name: str = "aguichat"
    service_version: str = "0.1.0"
    otlp_endpoint: str = "http://localhost:4317"
    otlp_insecure: bool = True
    metrics_export_interval_ms: int = 10000
    resource_attributes: dict[str, str] = field(default_factory=dict)


def init_telemetry(config: TelemetryConfig | None = None) -> bool:
    """
    Install SDK tracer and meter providers exporting over OTLP gRPC.

    Call once at process start. Returns False if already initialized or
    if the exporter could not be set up.
    """
    global _telemetry_initialized, _tracer_provider, _meter_provider

    if _telemetry_initialized:
        logger.debug("Telemetry already initialized")
        return False

    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    config = config or TelemetryConfig()
    resource_attrs = {
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
    }
    resource_attrs.update(config.resource_attributes)
    resource = Resource.create(resource_attrs)

    try:
        _tracer_provider = TracerProvider(resource=resource)
        _tracer_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=config.otlp_insecure)
            )
        )
        trace.set_tracer_provider(_tracer_provider)

        reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=config.otlp_endpoint, insecure=config.otlp_insecure),
            export_interval_millis=config.metrics_export_interval_ms,
        )
        _meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
        metrics.set_meter_provider(_meter_provider)
    except Exception as e:
        logger.error(f"Failed to initialize telemetry: {e}")
        return False

    _telemetry_initialized = True
    logger.info(f"Telemetry initialized, exporting to {config.otlp_endpoint}")
    return True


def shutdown_telemetry() -> None:
    """Flush and shut down SDK providers installed by init_telemetry()."""
    global _telemetry_initialized

    if not _telemetry_initialized:
        return

    try:
        if _meter_provider:
            _meter_provider.force_flush(timeout_millis=5000)
            _meter_provider.shutdown()
        if _tracer_provider:
            _tracer_provider.force_flush(timeout_millis=5000)
            _tracer_provider.shutdown()
    except Exception as e:
        logger.warning(f"Error during telemetry shutdown: {e}")
    finally:
        _telemetry_initialized = False


def get_tracer(name: str = "aguichat") -> trace.Tracer:
    """Get a tracer for creating spans."""
    return trace.get_tracer(name)


def get_meter(name: str = "aguichat") -> metrics.Meter:
    """Get a meter for creating metrics."""
    return metrics.get_meter(name)
