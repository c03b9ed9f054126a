"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

# Request metrics
request_duration = Histogram(
    "blocktrust_request_duration_seconds",
    "HTTP request duration",
    ["method", "status"],
)

# Lifecycle metrics
events_created = Counter(
    "blocktrust_events_created_total",
    "Total voting events and petitions created",
    ["event_type"],
)

lifecycle_transitions = Counter(
    "blocktrust_lifecycle_transitions_total",
    "Event status transitions",
    ["event_type", "to_status"],
)

# Participation metrics
participations = Counter(
    "blocktrust_participations_total",
    "Votes cast and petitions signed",
    ["kind"],
)

participation_rejections = Counter(
    "blocktrust_participation_rejections_total",
    "Rejected participation attempts",
    ["kind", "reason"],
)

# Ledger metrics
ledger_entries = Counter(
    "blocktrust_ledger_entries_total",
    "Simulated ledger entries appended",
    ["entry_type"],
)

# Template metrics
contract_deployments = Counter(
    "blocktrust_contract_deployments_total",
    "Simulated contract deployments",
    ["template_type"],
)
