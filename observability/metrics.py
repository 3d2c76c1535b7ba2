import time
from prometheus_client import Counter, Histogram, start_http_server
import logging

# Configure logger
logger = logging.getLogger(__name__)

# Define metrics
REQUESTS_TOTAL = Counter(
    'pshare_requests_total',
    'Total number of requests answered',
    ['route', 'method', 'status']
)

BYTES_SERVED = Counter(
    'pshare_bytes_served_total',
    'Total number of response body bytes sent'
)

REQUEST_DURATION = Histogram(
    'pshare_request_duration_seconds',
    'Time spent producing responses',
    ['route'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)


class MetricsCollector:
    """
    Metrics collector for pshare.
    Provides methods for recording request outcomes.
    """

    @staticmethod
    def record_request(route, method, status, body_size):
        """
        Record an answered request.

        Args:
            route (str): 'index' or 'file'
            method (str): HTTP method
            status (int): Response status code
            body_size (int): Number of body bytes sent
        """
        REQUESTS_TOTAL.labels(route=route, method=method, status=str(status)).inc()
        if body_size:
            BYTES_SERVED.inc(body_size)
        logger.debug(f"Recorded {method} on {route}: {status}, {body_size} bytes")

    @staticmethod
    def request_timer(route):
        """
        Context manager for timing request handling.

        Args:
            route (str): 'index' or 'file'

        Returns:
            context manager: Timer context manager
        """
        class Timer:
            def __enter__(self):
                self.start_time = time.time()
                return self

            def __exit__(self, exc_type, exc_val, exc_tb):
                duration = time.time() - self.start_time
                REQUEST_DURATION.labels(route=route).observe(duration)

        return Timer()

    @staticmethod
    def start_server(port, addr="0.0.0.0"):
        """
        Expose metrics on a separate port.

        Args:
            port (int): Port for the Prometheus exposition server
            addr (str): Address to bind to
        """
        start_http_server(port, addr=addr)
        logger.info(f"Metrics available at http://{addr}:{port}/metrics")


# Create a singleton instance
metrics = MetricsCollector()
