"""Prometheus metrics for token, policy update and authentication requests."""

from prometheus_client import Counter, Histogram

OK = "ok"
USER_ERROR = "user_error"
JWT_ERROR = "jwt_error"
JSON_ERROR = "json_error"
MISSING_CREDENTIALS = "missing_credentials"

_BUCKETS = (5, 10, 100, 250, 500, 1000)

token_processing_time = Histogram(
    "gw_ncfspolicyupdate_tokenrequest_processing_time_millisecond",
    "Time taken to process token creation request",
    buckets=_BUCKETS,
)

token_requests_total = Counter(
    "gw_ncfspolicyupdate_tokenrequest_received_total",
    "Number of token creation requests received",
    ["status"],
)

policy_update_processing_time = Histogram(
    "gw_ncfspolicyupdate_updaterequest_processing_time_millisecond",
    "Time taken to process policy update request",
    buckets=_BUCKETS,
)

policy_update_requests_total = Counter(
    "gw_ncfspolicyupdate_updaterequest_received_total",
    "Number of policy update requests received",
    ["status"],
)

auth_processing_time = Histogram(
    "gw_ncfspolicyupdate_authenticate_processing_time_millisecond",
    "Time taken to authenticate the request",
    buckets=_BUCKETS,
)

auth_requests_total = Counter(
    "gw_ncfspolicyupdate_authenticate_received_total",
    "Number of authentications received",
    ["status"],
)
