"""Monitoring configuration for study activity."""
from prometheus_client import Counter, Histogram, start_http_server

# Review metrics
reviews_total = Counter(
    "lexideck_reviews_total",
    "Total number of word ratings",
    ["quality"],
)

status_transitions = Counter(
    "lexideck_status_transitions_total",
    "Word status changes caused by ratings",
    ["from_status", "to_status"],
)

xp_awarded = Counter(
    "lexideck_xp_awarded_total",
    "Total experience points awarded",
)

# Session metrics
sessions_built = Counter(
    "lexideck_sessions_built_total",
    "Total number of study sessions built",
    ["scope"],
)

session_size = Histogram(
    "lexideck_session_size_words",
    "Number of words selected for a study session",
    buckets=[0, 1, 5, 10, 20, 50],
)

# Quiz metrics
quiz_answers = Counter(
    "lexideck_quiz_answers_total",
    "Total number of quiz answers",
    ["correct"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
