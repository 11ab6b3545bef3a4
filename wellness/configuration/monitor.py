import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from azure.monitor.opentelemetry.exporter import AzureMonitorTraceExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from wellness.configuration.config import Config

# Configure logger
logger = logging.getLogger("wellness")
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logger.addHandler(handler)
logger.setLevel(logging.INFO)

# Resource to identify this service
resource = Resource(attributes={
    SERVICE_NAME: "wellness-calendar"
})

def setup_azure_monitor():
    """Set up Azure Monitor using OpenTelemetry."""
    try:
        trace_provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(trace_provider)

        if Config.APPLICATIONINSIGHTS_CONNECTION_STRING:
            azure_exporter = AzureMonitorTraceExporter(
                connection_string=Config.APPLICATIONINSIGHTS_CONNECTION_STRING
            )
            trace_provider.add_span_processor(
                BatchSpanProcessor(azure_exporter)
            )
            logger.info("Azure Monitor setup completed successfully")
        else:
            logger.info("Application Insights not configured, traces stay local")

        return trace.get_tracer(__name__)
    except Exception as e:
        logger.error(f"Failed to set up Azure Monitor: {str(e)}")
        # Return a no-op tracer if setup fails
        return trace.get_tracer(__name__)

# Initialize tracer
tracer = setup_azure_monitor()

def instrument_fastapi(app):
    """Instrument a FastAPI application for monitoring."""
    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI app instrumented successfully")
    except Exception as e:
        logger.error(f"Failed to instrument FastAPI app: {str(e)}")

def start_span(name, context=None, kind=None, attributes=None):
    """Start a new trace span with the specified name and attributes."""
    if kind is None:
        kind = trace.SpanKind.INTERNAL
    return tracer.start_as_current_span(name, context=context, kind=kind, attributes=attributes)

def span_attributes(properties=None):
    """Flatten log properties into span attributes. None values are dropped."""
    return {key: str(value) for key, value in (properties or {}).items() if value is not None}

def _record(span_name, properties=None, **attributes):
    with tracer.start_as_current_span(span_name, attributes={**span_attributes(properties), **attributes}):
        pass

def log_event(event_name, properties=None):
    """Log a custom event to Azure Monitor."""
    try:
        _record(event_name, properties)
        logger.info(f"Event: {event_name}", extra={"custom_properties": properties})
    except Exception as e:
        logger.error(f"Failed to log event '{event_name}': {str(e)}")

def log_warning(message, properties=None):
    """Log a recoverable problem as a warning on the current span."""
    try:
        trace.get_current_span().add_event(message, attributes=span_attributes(properties))
        logger.warning(message, extra={"custom_properties": properties})
    except Exception as e:
        logger.error(f"Failed to log warning '{message}': {str(e)}")

def log_exception(exception, properties=None):
    """Log an exception to Azure Monitor."""
    try:
        with tracer.start_as_current_span("exception", attributes=span_attributes(properties)) as span:
            span.record_exception(exception)
            span.set_status(trace.StatusCode.ERROR, str(exception))
        logger.exception(f"Exception: {str(exception)}", exc_info=exception,
                         extra={"custom_properties": properties})
    except Exception as e:
        logger.error(f"Failed to log exception: {str(e)}")

def log_metric(metric_name, value, properties=None):
    """Record a calendar metric, e.g. slots emitted or rows skipped."""
    try:
        _record(f"metric:{metric_name}", properties, **{"metric.value": value})
        logger.info(f"Metric: {metric_name}={value}", extra={"custom_properties": properties})
    except Exception as e:
        logger.error(f"Failed to log metric '{metric_name}': {str(e)}")
