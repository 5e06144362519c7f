from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from lnd_exporter import config
from lnd_exporter.collector import LndCollector
from lnd_exporter.main import create_app
from lnd_exporter.models import GetInfoResponse, ListChannelsResponse, ListPaymentsResponse
from lnd_exporter.routes import exporter
from lnd_exporter.rpc import LndRpcError


class StubLnd:
    def __init__(self, info_error=None):
        self.info_error = info_error
        self.page = 0

    def get_info(self):
        if self.info_error:
            raise self.info_error
        return GetInfoResponse(num_peers=5, block_height=812345)

    def list_payments(self, index_offset=0, include_incomplete=True):
        self.page += 1
        if self.page == 1:
            return ListPaymentsResponse.model_validate({
                "payments": [{"status": "SUCCEEDED"}, {"status": "SUCCEEDED"},
                             {"status": "FAILED", "failure_reason": "FAILURE_REASON_TIMEOUT"}],
                "last_index_offset": "10",
            })
        return ListPaymentsResponse.model_validate({
            "payments": [{"status": "IN_FLIGHT"}],
            "last_index_offset": "10",
        })

    def list_channels(self):
        return ListChannelsResponse.model_validate({"channels": [{
            "chan_id": "123", "active": True, "channel_point": "abc:0",
            "local_balance": "1000", "remote_balance": "2000", "unsettled_balance": "0",
        }]})


def create_client(lnd=None):
    collector = LndCollector(lnd or StubLnd(), registry=CollectorRegistry())
    return TestClient(create_app(collector))


def test_health():
    client = create_client()
    r = client.get("/health")
    assert r.status_code == 200
    assert r.content == b""


def test_unknown_path_is_404():
    assert create_client().get("/nope").status_code == 404


def test_metrics_exposition():
    client = create_client()
    r = client.get("/metrics")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    text = r.text
    assert "lnd_num_peers_total 5.0" in text
    assert "lnd_block_height 812345.0" in text
    assert 'lnd_outgoing_payments{status="succeeded"} 2.0' in text
    assert 'lnd_outgoing_payments{status="failed"} 1.0' in text
    assert 'lnd_payment_failure_reasons{reason="timeout"} 1.0' in text
    prefix = 'lnd_channel_balance_total_sat{chan_id="123",active="true",channel_point="abc:0",'
    assert prefix + 'category="local"} 1000.0' in text
    assert prefix + 'category="remote"} 2000.0' in text
    assert prefix + 'category="unsettled"} 0.0' in text


def test_metrics_second_poll_keeps_totals():
    client = create_client()
    client.get("/metrics")
    text = client.get("/metrics").text
    assert 'lnd_outgoing_payments{status="in_flight"} 1.0' in text
    assert 'lnd_outgoing_payments{status="succeeded"} 2.0' in text
    assert 'lnd_outgoing_payments{status="failed"} 1.0' in text


def test_getinfo_failure_degrades_output():
    client = create_client(StubLnd(info_error=LndRpcError("getinfo", "connection refused")))
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "lnd_num_peers_total " not in r.text
    assert "lnd_block_height " not in r.text
    assert 'lnd_outgoing_payments{status="succeeded"} 2.0' in r.text
    assert 'chan_id="123"' in r.text
    assert 'lnd_exporter_scrape_errors_total{scraper="getinfo"} 1.0' in r.text


def test_metrics_requires_api_key_when_configured(monkeypatch):
    monkeypatch.setattr(config, "API_KEYS", {"testkey"})
    monkeypatch.setattr(config, "API_KEY_REVOKED", {"oldkey"})
    client = create_client()
    assert client.get("/metrics").status_code == 401
    assert client.get("/metrics", headers={"x-api-key": "oldkey"}).status_code == 401
    assert client.get("/metrics", headers={"x-api-key": "testkey"}).status_code == 200
    assert client.get("/health").status_code == 200


def test_encode_failure_returns_500(monkeypatch):
    def broken(registry):
        raise ValueError("bad sample")

    monkeypatch.setattr(exporter, "generate_latest", broken)
    r = create_client().get("/metrics")
    assert r.status_code == 500
    assert r.text == "Failed to encode metrics"
