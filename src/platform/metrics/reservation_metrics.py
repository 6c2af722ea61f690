from prometheus_client import Counter, Gauge, Histogram


class ReservationMetrics:
    """
    Reservation Finalization Metrics Collector

    Tracks finalize outcomes, lock waits and calls to the membership/billing services
    """

    def __init__(self):
        # ========== Finalization Business Metrics ==========
        self.finalize_requests = Counter(
            'reservation_finalize_requests_total',
            'Total reservation finalize attempts',
            ['result'],  # result: success or a failure kind
        )

        self.finalize_duration = Histogram(
            'reservation_finalize_duration_seconds',
            'Reservation finalize processing time',
            ['result'],
            buckets=[0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
        )

        self.finalize_in_progress = Gauge(
            'reservation_finalize_in_progress', 'Finalize attempts currently running'
        )

        self.bill_compensations = Counter(
            'reservation_bill_compensations_total',
            'Bills cancelled because their reservation was not committed',
            ['result'],  # result: cancelled/failed
        )

        self.event_publish_failures = Counter(
            'reservation_event_publish_failures_total',
            'Reservation events that could not be published',
            ['event_type'],
        )

        # ========== External Service Metrics ==========
        self.external_requests = Counter(
            'reservation_external_requests_total',
            'Requests to membership and billing services',
            ['service', 'operation', 'outcome'],  # outcome: ok/not_found/error
        )

        self.external_request_duration = Histogram(
            'reservation_external_request_duration_seconds',
            'External service request latency',
            ['service', 'operation'],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
        )

    # ========== Helper Methods ==========

    def record_finalize(self, *, result: str, duration: float):
        self.finalize_requests.labels(result=result).inc()
        self.finalize_duration.labels(result=result).observe(duration)

    def record_bill_compensation(self, *, result: str):
        self.bill_compensations.labels(result=result).inc()

    def record_publish_failure(self, *, event_type: str):
        self.event_publish_failures.labels(event_type=event_type).inc()

    def record_external_request(
        self, *, service: str, operation: str, outcome: str, duration: float
    ):
        self.external_requests.labels(service=service, operation=operation, outcome=outcome).inc()
        self.external_request_duration.labels(service=service, operation=operation).observe(
            duration
        )


# Global metrics instance
metrics = ReservationMetrics()
