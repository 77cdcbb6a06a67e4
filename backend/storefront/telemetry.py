"""
Tracing and metrics shared by the API and the services.

Spans go through the OpenTelemetry API; they are no-ops until an SDK and
exporter are configured (e.g. by opentelemetry-instrument in the container).
Prometheus metrics are scraped from /metrics.
"""

from opentelemetry import trace
from prometheus_client import Counter, Histogram

tracer = trace.get_tracer("storefront")

# Prometheus metrics
http_requests_total = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
http_request_duration_seconds = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
orders_total = Counter('orders_total', 'Total orders', ['status'])
revenue_total = Counter('revenue_total_usd', 'Total revenue in USD')
