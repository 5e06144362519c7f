"""Collection engine: serializes LND scrapes and maps them to gauges.

One ``collect()`` call is one collection cycle. The cycle holds a single
lock across all three scrapes, so the RPC session and the payment cursor
are never used by two cycles at once.
"""
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from . import metrics
from .config import (
    COLLECT_LOCK_TIMEOUT,
    LND_MACAROON_PATH,
    LND_REST_URL,
    LND_RPC_TIMEOUT,
    LND_TLS_CERT_PATH,
)
from .logging import log
from .metrics import ExporterMetrics
from .models import FailureReason, ListPaymentsResponse, PaymentStatus
from .rpc import LndClient, read_macaroon


@dataclass
class PaymentCursor:
    """Pagination bookmark and running totals for ``listpayments``."""

    index_offset: int = 0
    status_counts: Dict[PaymentStatus, int] = field(default_factory=dict)
    failure_reason_counts: Dict[FailureReason, int] = field(default_factory=dict)
    total_fee_msat: int = 0

    def advance(self, response: ListPaymentsResponse) -> None:
        status_counts = dict(self.status_counts)
        failure_reason_counts = dict(self.failure_reason_counts)
        total_fee_msat = self.total_fee_msat
        for payment in response.payments:
            status_counts[payment.status] = status_counts.get(payment.status, 0) + 1
            failure_reason_counts[payment.failure_reason] = (
                failure_reason_counts.get(payment.failure_reason, 0) + 1
            )
            if payment.status is PaymentStatus.SUCCEEDED:
                total_fee_msat += payment.fee_msat

        # lnd reports offset 0 when a page comes back empty
        self.index_offset = max(self.index_offset, response.last_index_offset)
        self.status_counts = status_counts
        self.failure_reason_counts = failure_reason_counts
        self.total_fee_msat = total_fee_msat


def scrape_getinfo(client: LndClient) -> List[GaugeMetricFamily]:
    info = client.get_info()
    return [
        metrics.num_peers_total(info.num_peers),
        metrics.block_height(info.block_height),
    ]


def scrape_listpayments(client: LndClient, cursor: PaymentCursor) -> List[GaugeMetricFamily]:
    res = client.list_payments(index_offset=cursor.index_offset, include_incomplete=True)
    cursor.advance(res)
    return [
        metrics.outgoing_payments(cursor.status_counts),
        metrics.payment_failure_reasons(cursor.failure_reason_counts),
        metrics.total_fee_msat(cursor.total_fee_msat),
    ]


def scrape_listchannels(client: LndClient) -> List[GaugeMetricFamily]:
    res = client.list_channels()
    return [metrics.channel_balance_total_sat(res.channels)]


class LndCollector(Collector):
    def __init__(
        self,
        client: LndClient,
        registry: Optional[CollectorRegistry] = None,
        lock_timeout: Optional[float] = None,
        exporter_metrics: Optional[ExporterMetrics] = None,
    ):
        self.client = client
        self.registry = registry if registry is not None else CollectorRegistry()
        self.metrics = exporter_metrics or ExporterMetrics(self.registry)
        self.lock_timeout = lock_timeout
        self.cursor = PaymentCursor()
        self._lock = threading.Lock()
        self.registry.register(self)

    def describe(self) -> List[GaugeMetricFamily]:
        return metrics.describe_families()

    def collect(self) -> List[GaugeMetricFamily]:
        timeout = -1 if self.lock_timeout is None else self.lock_timeout
        if not self._lock.acquire(timeout=timeout):
            log.error("collect_failed", error="timed out waiting for collection lock", timeout=timeout)
            return []
        try:
            return self._collect_cycle()
        except Exception as e:
            log.error("collect_failed", error=str(e), error_type=type(e).__name__)
            return []
        finally:
            self._lock.release()

    def _collect_cycle(self) -> List[GaugeMetricFamily]:
        families: List[GaugeMetricFamily] = []
        families.extend(self._scrape("getinfo", scrape_getinfo, self.client))
        families.extend(self._scrape("listpayments", scrape_listpayments, self.client, self.cursor))
        families.extend(self._scrape("listchannels", scrape_listchannels, self.client))
        return families

    def _scrape(self, name: str, scraper, *args) -> List[GaugeMetricFamily]:
        try:
            return scraper(*args)
        except Exception as e:
            log.error("scrape_failed", scraper=name, error=str(e), error_type=type(e).__name__)
            self.metrics.scrape_errors.labels(scraper=name).inc()
            return []


def build_collector(
    url: str = LND_REST_URL,
    macaroon_path: Optional[str] = LND_MACAROON_PATH,
    tls_cert_path: Optional[str] = LND_TLS_CERT_PATH,
    rpc_timeout: Optional[float] = LND_RPC_TIMEOUT,
    lock_timeout: Optional[float] = COLLECT_LOCK_TIMEOUT,
) -> LndCollector:
    registry = CollectorRegistry()
    exporter_metrics = ExporterMetrics(registry)
    client = LndClient(
        url,
        macaroon=read_macaroon(macaroon_path) if macaroon_path else None,
        tls_cert_path=tls_cert_path,
        timeout=rpc_timeout,
        metrics=exporter_metrics,
    )
    return LndCollector(
        client,
        registry=registry,
        lock_timeout=lock_timeout,
        exporter_metrics=exporter_metrics,
    )
