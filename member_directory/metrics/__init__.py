# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Prometheus metrics for the member directory."""
from prometheus_client import Counter, Histogram

MOD_LINKS_ISSUED = Counter(
    "mod_links_issued_total",
    "Modification links generated",
)
ACCESS_DECISIONS = Counter(
    "access_decisions_total",
    "Key-based access decisions by outcome",
    ["outcome"],
)
KEY_SCAN_SECONDS = Histogram(
    "key_scan_duration_seconds",
    "Time spent scanning the member store for a modification key",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
MEMBER_WRITES = Counter(
    "member_writes_total",
    "Member records written",
    ["operation", "mode"],
)
SHEET_MIRROR_FAILURES = Counter(
    "sheet_mirror_failures_total",
    "Failed attempts to mirror a member write into the spreadsheet",
)
GROUP_OPERATIONS = Counter(
    "group_operations_total",
    "Group create/rename/delete operations",
    ["operation"],
)
REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request latency", ["method", "endpoint"]
)
HTTP_ERRORS = Counter(
    "http_errors_total", "Total HTTP errors", ["method", "endpoint", "status"]
)
