from prometheus_client import Counter, Histogram, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        # Try to create it
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        # If it already exists, retrieve it from the registry
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "aicalamba_requests_total",
    "Total conversion requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "aicalamba_request_latency_seconds",
    "Conversion request latency",
    Histogram,
    labelnames=["endpoint"],
)

SCREENSHOTS_TOTAL = get_or_create_metric(
    "aicalamba_screenshots_total",
    "Screenshot acquisitions",
    Counter,
    labelnames=["outcome"],
)

ICAL_VALIDATION_TOTAL = get_or_create_metric(
    "aicalamba_ical_validation_total",
    "Advisory iCal validation results",
    Counter,
    labelnames=["result"],
)
