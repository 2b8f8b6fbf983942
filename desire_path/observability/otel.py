"""OpenTelemetry + Prometheus fallback wiring for transcript reconstruction."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from desire_path import config

logger = logging.getLogger("desire_path.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None

_reconstruction_counter: Any | None = None
_reconstruction_latency_hist: Any | None = None
_turns_counter: Any | None = None
_parser_failure_counter: Any | None = None
_step_outcome_counter: Any | None = None

_prom_enabled = False
_prom_reconstruction_counter: Any | None = None
_prom_reconstruction_latency_hist: Any | None = None
_prom_turns_counter: Any | None = None
_prom_parser_failure_counter: Any | None = None
_prom_step_outcome_counter: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _label(value: str) -> str:
    return (value or "").strip() or "unknown"


def initialize() -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider
    global _reconstruction_counter, _reconstruction_latency_hist, _turns_counter
    global _parser_failure_counter, _step_outcome_counter
    global _prom_enabled
    global _prom_reconstruction_counter, _prom_reconstruction_latency_hist, _prom_turns_counter
    global _prom_parser_failure_counter, _prom_step_outcome_counter

    if _initialized:
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (DP_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "desire-path-transcripts"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "desire-path",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_exporter = OTLPSpanExporter(endpoint=traces_endpoint or None)
    trace_provider.add_span_processor(BatchSpanProcessor(trace_exporter))
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("desire_path.transcripts")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("desire_path.transcripts")

    _reconstruction_counter = meter.create_counter(
        "dp_transcript_reconstructions_total",
        unit="1",
        description="Count of transcript reconstructions by result",
    )
    _reconstruction_latency_hist = meter.create_histogram(
        "dp_transcript_reconstruction_latency_ms",
        unit="ms",
        description="Latency of decoding and segmenting one transcript",
    )
    _turns_counter = meter.create_counter(
        "dp_transcript_turns_total",
        unit="1",
        description="Turns and steps produced by reconstruction",
    )
    _parser_failure_counter = meter.create_counter(
        "dp_parser_failures_total",
        unit="1",
        description="Count of transcripts rejected by the decoder",
    )
    _step_outcome_counter = meter.create_counter(
        "dp_step_outcomes_total",
        unit="1",
        description="Tool invocation outcomes observed in reconstructed turns",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _enabled = True

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, Histogram, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_enabled = True
            _prom_reconstruction_counter = Counter(
                "dp_transcript_reconstructions_total",
                "Count of transcript reconstructions by result",
                ["result"],
            )
            _prom_reconstruction_latency_hist = Histogram(
                "dp_transcript_reconstruction_latency_ms",
                "Latency of decoding and segmenting one transcript",
                ["result"],
            )
            _prom_turns_counter = Counter(
                "dp_transcript_turns_total",
                "Turns and steps produced by reconstruction",
                ["kind"],
            )
            _prom_parser_failure_counter = Counter(
                "dp_parser_failures_total",
                "Count of transcripts rejected by the decoder",
                ["parser"],
            )
            _prom_step_outcome_counter = Counter(
                "dp_step_outcomes_total",
                "Tool invocation outcomes observed in reconstructed turns",
                ["tool", "status"],
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown() -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if _meter_provider is not None:
            _meter_provider.shutdown()
    except Exception as exc:  # noqa: BLE001
        logger.debug("meter provider shutdown failed: %s", exc)
    try:
        if _trace_provider is not None:
            _trace_provider.shutdown()
    except Exception as exc:  # noqa: BLE001
        logger.debug("trace provider shutdown failed: %s", exc)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_reconstruction(result: str, duration_ms: float, *, turns: int = 0, steps: int = 0) -> None:
    labels = {"result": _label(result)}
    latency = max(0.0, float(duration_ms))
    if _enabled and _reconstruction_counter is not None:
        _reconstruction_counter.add(1, labels)
    if _enabled and _reconstruction_latency_hist is not None:
        _reconstruction_latency_hist.record(latency, labels)
    if _enabled and _turns_counter is not None:
        if turns > 0:
            _turns_counter.add(int(turns), {"kind": "turn"})
        if steps > 0:
            _turns_counter.add(int(steps), {"kind": "step"})
    if _prom_enabled and _prom_reconstruction_counter is not None:
        _prom_reconstruction_counter.labels(**labels).inc()
    if _prom_enabled and _prom_reconstruction_latency_hist is not None:
        _prom_reconstruction_latency_hist.labels(**labels).observe(latency)
    if _prom_enabled and _prom_turns_counter is not None:
        if turns > 0:
            _prom_turns_counter.labels(kind="turn").inc(int(turns))
        if steps > 0:
            _prom_turns_counter.labels(kind="step").inc(int(steps))


def record_parser_failure(parser: str) -> None:
    labels = {"parser": _label(parser)}
    if _enabled and _parser_failure_counter is not None:
        _parser_failure_counter.add(1, labels)
    if _prom_enabled and _prom_parser_failure_counter is not None:
        _prom_parser_failure_counter.labels(**labels).inc()


def record_step_outcome(tool: str, status: str, *, count: int = 1) -> None:
    safe_count = max(0, int(count))
    if safe_count == 0:
        return
    labels = {"tool": _label(tool), "status": _label(status)}
    if _enabled and _step_outcome_counter is not None:
        _step_outcome_counter.add(safe_count, labels)
    if _prom_enabled and _prom_step_outcome_counter is not None:
        _prom_step_outcome_counter.labels(**labels).inc(safe_count)
