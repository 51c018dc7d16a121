"""Backend metrics with OpenTelemetry support."""
from typing import Optional
from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader

_meter = metrics.get_meter("plugboard")

query_duration_histogram = _meter.create_histogram(
    name="plugboard.query.duration",
    description="Wall-clock duration of delegated native query calls",
    unit="ms",
)
query_error_counter = _meter.create_counter(
    name="plugboard.query.errors",
    description="Failed query executions by backend and error code",
    unit="1",
)
active_connections = _meter.create_up_down_counter(
    name="plugboard.connections.active",
    description="Open connections per backend",
    unit="1",
)


def configure_metrics(exporter_type: str = "none", otlp_endpoint: Optional[str] = None):
    """Configures the OpenTelemetry Metric Provider.

    Args:
        exporter_type: 'none', 'console', or 'otlp'
        otlp_endpoint: Optional endpoint for OTLP exporter
    """
    if exporter_type == "none":
        return

    reader = None
    if exporter_type == "console":
        reader = PeriodicExportingMetricReader(ConsoleMetricExporter())
    elif exporter_type == "otlp":
        # Shipped in the 'otlp' extra
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        endpoint = otlp_endpoint or "http://localhost:4317"
        reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=endpoint))
    else:
        raise ValueError(f"Unknown metrics exporter: '{exporter_type}'")

    provider = MeterProvider(metric_readers=[reader])
    metrics.set_meter_provider(provider)
