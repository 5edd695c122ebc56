"""Prometheus metrics for s3-website."""

from prometheus_client import Counter, Histogram

# Sync metrics
transfer_operations_total = Counter(
    "s3_website_transfer_operations_total",
    "Total number of object uploads and deletions",
    ["operation", "result"],
)

transfer_retries_total = Counter(
    "s3_website_transfer_retries_total",
    "Total number of retried object store calls",
    ["operation"],
)

sync_duration_seconds = Histogram(
    "s3_website_sync_duration_seconds",
    "Duration of sync runs in seconds",
    buckets=[0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0],
)

# Provisioning metrics
provisioning_transitions_total = Counter(
    "s3_website_provisioning_transitions_total",
    "Total number of provisioning transitions",
    ["stage", "result"],
)

drift_detected_total = Counter(
    "s3_website_drift_detected_total",
    "Total number of configuration drift detections left unapplied",
    ["stage"],
)

# API call metrics
api_call_total = Counter(
    "s3_website_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "s3_website_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

error_total = Counter(
    "s3_website_error_total",
    "Total number of fatal errors by type",
    ["component", "error_type"],
)
