from prometheus_client import Counter, Histogram


class FulfillmentMetrics:
    """
    Order fulfillment metrics collector

    Tracks checkout outcomes, settlement races, expiry sweeps and refunds.
    Label values are closed vocabularies (error codes, statuses), never ids.
    """

    def __init__(self) -> None:
        # ========== Checkout ==========
        self.orders_created = Counter(
            'fulfillment_orders_created_total',
            'Orders that reached pending_payment',
            ['payment_method'],
        )
        self.order_rejections = Counter(
            'fulfillment_order_rejections_total',
            'createOrder rejections by error code',
            ['code'],
        )
        self.hold_duration = Histogram(
            'fulfillment_hold_duration_seconds',
            'Time to hold every item of a cart in the ledger',
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
        )

        # ========== Settlement ==========
        self.settlements = Counter(
            'fulfillment_settlements_total',
            'Settlement attempts by result (paid or error code)',
            ['result'],
        )
        self.payment_confirmations = Counter(
            'fulfillment_payment_confirmations_total',
            'Payment confirmations by outcome',
            ['outcome'],  # applied/replayed/rejected
        )

        # ========== Reservation expiry ==========
        self.reservations_expired = Counter(
            'fulfillment_reservations_expired_total',
            'Reservations released by the expiry sweep',
        )
        self.sweep_duration = Histogram(
            'fulfillment_sweep_duration_seconds',
            'Duration of one expiry sweep tick',
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0],
        )

        # ========== Refunds ==========
        self.refunds = Counter(
            'fulfillment_refunds_total',
            'Refund transitions by resulting status',
            ['status'],
        )
        self.refunded_amount_minor = Counter(
            'fulfillment_refunded_amount_minor_total',
            'Completed refund amount in minor units',
            ['currency'],
        )

    def record_order_created(self, *, payment_method: str) -> None:
        self.orders_created.labels(payment_method=payment_method).inc()

    def record_order_rejected(self, *, code: str) -> None:
        self.order_rejections.labels(code=code).inc()

    def record_settlement(self, *, result: str) -> None:
        self.settlements.labels(result=result).inc()

    def record_payment_confirmation(self, *, outcome: str) -> None:
        self.payment_confirmations.labels(outcome=outcome).inc()

    def record_sweep(self, *, expired: int, duration: float) -> None:
        self.reservations_expired.inc(expired)
        self.sweep_duration.observe(duration)

    def record_refund(self, *, status: str, amount_minor: int = 0, currency: str = '') -> None:
        self.refunds.labels(status=status).inc()
        if amount_minor and currency:
            self.refunded_amount_minor.labels(currency=currency).inc(amount_minor)


# Global metrics instance
metrics = FulfillmentMetrics()
