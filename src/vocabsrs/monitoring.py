"""Monitoring configuration for the review engine."""
from prometheus_client import Counter, Gauge, Histogram, start_http_server

# Review metrics
answers_recorded = Counter(
    "vocabsrs_answers_recorded_total",
    "Total number of graded answers recorded",
    ["skill", "result"],
)

response_time = Histogram(
    "vocabsrs_response_time_seconds",
    "Time the learner needed to answer",
    ["skill"],
    buckets=[1.0, 3.0, 5.0, 10.0, 30.0],
)

due_queue_size = Gauge(
    "vocabsrs_due_queue_size",
    "Number of (item, skill) pairs due today",
)

sessions_started = Counter(
    "vocabsrs_sessions_started_total",
    "Total number of review sessions started or resumed",
    ["resumed"],
)

# Achievement metrics
achievements_unlocked = Counter(
    "vocabsrs_achievements_unlocked_total",
    "Total number of achievements unlocked",
    ["prefix"],
)

# Storage metrics
storage_errors = Counter(
    "vocabsrs_storage_errors_total",
    "Total number of storage errors",
    ["operation"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
