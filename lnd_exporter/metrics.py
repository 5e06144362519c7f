from typing import Dict, Iterable, List

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.core import GaugeMetricFamily

from .models import Channel, FailureReason, PaymentStatus


PAYMENT_STATUS_LABELS: Dict[PaymentStatus, str] = {
    PaymentStatus.UNKNOWN: "unknown",
    PaymentStatus.IN_FLIGHT: "in_flight",
    PaymentStatus.SUCCEEDED: "succeeded",
    PaymentStatus.FAILED: "failed",
}

FAILURE_REASON_LABELS: Dict[FailureReason, str] = {
    FailureReason.NONE: "none",
    FailureReason.TIMEOUT: "timeout",
    FailureReason.NO_ROUTE: "no_route",
    FailureReason.ERROR: "error",
    FailureReason.INCORRECT_PAYMENT_DETAILS: "incorrect_payment_details",
    FailureReason.INSUFFICIENT_BALANCE: "insufficient_balance",
}

CHANNEL_BALANCE_CATEGORIES = ("local", "remote", "unsettled")


def _check_exhaustive(table, enum_cls):
    missing = [member.name for member in enum_cls if member not in table]
    if missing:
        raise RuntimeError(f"no label for {enum_cls.__name__} members: {', '.join(missing)}")


_check_exhaustive(PAYMENT_STATUS_LABELS, PaymentStatus)
_check_exhaustive(FAILURE_REASON_LABELS, FailureReason)


# ---- LND gauges ----
def num_peers_total(value=None) -> GaugeMetricFamily:
    return GaugeMetricFamily(
        "lnd_num_peers_total", "Number of peers connected to the lnd node", value=value
    )


def block_height(value=None) -> GaugeMetricFamily:
    return GaugeMetricFamily("lnd_block_height", "Chain block height", value=value)


def outgoing_payments(counts: Dict[PaymentStatus, int] = None) -> GaugeMetricFamily:
    family = GaugeMetricFamily(
        "lnd_outgoing_payments", "Number of outgoing payments on the lnd node", labels=["status"]
    )
    for status, label in PAYMENT_STATUS_LABELS.items():
        if counts and status in counts:
            family.add_metric([label], counts[status])
    return family


def payment_failure_reasons(counts: Dict[FailureReason, int] = None) -> GaugeMetricFamily:
    family = GaugeMetricFamily(
        "lnd_payment_failure_reasons", "Payment failure reasons", labels=["reason"]
    )
    for reason, label in FAILURE_REASON_LABELS.items():
        if counts and reason in counts:
            family.add_metric([label], counts[reason])
    return family


def channel_balance_total_sat(channels: Iterable[Channel] = ()) -> GaugeMetricFamily:
    family = GaugeMetricFamily(
        "lnd_channel_balance_total_sat",
        "Individual channel balances",
        labels=["chan_id", "active", "channel_point", "category"],
    )
    for channel in channels:
        chan_id = str(channel.chan_id)
        active = "true" if channel.active else "false"
        balances = (channel.local_balance, channel.remote_balance, channel.unsettled_balance)
        for category, balance in zip(CHANNEL_BALANCE_CATEGORIES, balances):
            family.add_metric([chan_id, active, channel.channel_point, category], balance)
    return family


def total_fee_msat(value=None) -> GaugeMetricFamily:
    return GaugeMetricFamily("lnd_total_fee_msat", "Total fee paid", value=value)


def describe_families() -> List[GaugeMetricFamily]:
    """Every family the collector can emit, without samples."""
    return [
        num_peers_total(),
        block_height(),
        outgoing_payments(),
        payment_failure_reasons(),
        total_fee_msat(),
        channel_balance_total_sat(),
    ]


# ---- exporter self-metrics ----
class ExporterMetrics:
    def __init__(self, registry: CollectorRegistry):
        self.rpc_duration = Histogram(
            "lnd_exporter_rpc_duration_seconds",
            "LND RPC duration",
            ["method"],
            registry=registry,
        )
        self.scrape_errors = Counter(
            "lnd_exporter_scrape_errors_total",
            "Failed scrapes by scraper",
            ["scraper"],
            registry=registry,
        )
