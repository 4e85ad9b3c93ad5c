"""
Prometheus metrics

All metrics are defined here; the relay middleware and client code import what they need.
"""

from prometheus_client import Counter, Histogram

# ── Sync engine ──

SYNC_CALL_TOTAL = Counter(
    "boardsync_sync_call_total",
    "Remote fragment store calls",
    ["operation", "status"],  # status: success/error
)

# ── Tool bridge ──

TOOL_CALL_TOTAL = Counter(
    "boardsync_tool_call_total",
    "Tool calls received over the bridge",
    ["tool_name", "status"],  # status: success/error
)

BRIDGE_MESSAGE_TOTAL = Counter(
    "boardsync_bridge_message_total",
    "Inbound bridge messages",
    ["type", "outcome"],  # outcome: handled/rejected_origin/malformed/invalid
)

# ── Token lifecycle ──

TOKEN_REFRESH_TOTAL = Counter(
    "boardsync_token_refresh_total",
    "Token refresh attempts",
    ["status"],
)

# ── Relay ──

RELAY_REQUEST_TOTAL = Counter(
    "boardsync_relay_request_total",
    "Relay HTTP requests",
    ["method", "route", "status_code"],
)

RELAY_REQUEST_DURATION = Histogram(
    "boardsync_relay_request_duration_ms",
    "Relay request duration (ms)",
    ["method", "route"],
    buckets=[50, 100, 200, 500, 1000, 2000, 5000, 10000],
)
