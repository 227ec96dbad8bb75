from prometheus_client import Counter, Histogram, make_asgi_app

# Route label uses the route template so dynamic path segments stay low-cardinality
REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency in seconds",
    ["method", "route"],
)

# phase: single | multipart_start | multipart_complete | rejected
UPLOAD_NEGOTIATIONS = Counter(
    "upload_negotiations_total",
    "Upload negotiation outcomes",
    ["phase", "status"],
)

PART_URLS_ISSUED = Counter(
    "upload_part_urls_issued_total",
    "Presigned part URLs issued for multipart uploads",
)

metrics_app = make_asgi_app()
