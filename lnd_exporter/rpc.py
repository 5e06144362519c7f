import time
from typing import Any, Dict, Optional

import requests

from .logging import log, req_id_var
from .metrics import ExporterMetrics
from .models import GetInfoResponse, ListChannelsResponse, ListPaymentsResponse


class LndRpcError(Exception):
    def __init__(self, method: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{method}: {message}")
        self.method = method
        self.message = message
        self.status_code = status_code


def read_macaroon(path: str) -> bytes:
    with open(path, "rb") as f:
        macaroon = f.read()
    log.info("macaroon_loaded", path=path)
    return macaroon


class LndClient:
    """Thin client for the LND REST gateway.

    Not thread safe on its own; the collector serializes every call.
    """

    def __init__(
        self,
        url: str,
        macaroon: Optional[bytes] = None,
        tls_cert_path: Optional[str] = None,
        timeout: Optional[float] = None,
        metrics: Optional[ExporterMetrics] = None,
        session: Optional[requests.Session] = None,
    ):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.metrics = metrics
        self.session = session or requests.Session()
        if macaroon:
            self.session.headers["Grpc-Metadata-macaroon"] = macaroon.hex()
        if tls_cert_path:
            self.session.verify = tls_cert_path
            log.info("tls_cert_loaded", path=tls_cert_path)

    def _get(self, method: str, path: str, params: Dict[str, Any] = None) -> Any:
        bound = log.bind(request_id=req_id_var.get(), rpc_method=method)
        start = time.time()
        bound.debug("rpc_start", params=params)
        r = None
        try:
            r = self.session.get(self.url + path, params=params, timeout=self.timeout)
            if r.status_code >= 400:
                raise LndRpcError(method, _error_message(r), r.status_code)
            j = r.json()
        except LndRpcError as e:
            bound.error("rpc_error", error=e.message, status=e.status_code, duration=time.time() - start)
            raise
        except (requests.RequestException, ValueError) as e:
            bound.error("rpc_error", error=str(e), duration=time.time() - start)
            raise LndRpcError(method, str(e), getattr(r, "status_code", None)) from e
        duration = time.time() - start
        bound.info("rpc_success", duration=duration)
        if self.metrics is not None:
            self.metrics.rpc_duration.labels(method=method).observe(duration)
        return j

    def get_info(self) -> GetInfoResponse:
        return GetInfoResponse.model_validate(self._get("getinfo", "/v1/getinfo"))

    def list_payments(self, index_offset: int = 0, include_incomplete: bool = True) -> ListPaymentsResponse:
        params = {
            "include_incomplete": "true" if include_incomplete else "false",
            "index_offset": index_offset,
        }
        return ListPaymentsResponse.model_validate(self._get("listpayments", "/v1/payments", params))

    def list_channels(self) -> ListChannelsResponse:
        return ListChannelsResponse.model_validate(self._get("listchannels", "/v1/channels"))


def _error_message(r: requests.Response) -> str:
    # the gateway answers errors with {"code": .., "message": ..}
    try:
        body = r.json()
    except ValueError:
        return f"status {r.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return f"status {r.status_code}"
