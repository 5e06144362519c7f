import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import Header, HTTPException

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


LND_REST_URL         = os.getenv("LND_REST_URL", "https://localhost:8080")
LND_MACAROON_PATH    = os.getenv("LND_MACAROON_PATH") or None
LND_TLS_CERT_PATH    = os.getenv("LND_TLS_CERT_PATH") or None
# unset means calls and lock waits block indefinitely
LND_RPC_TIMEOUT      = _optional_float("LND_RPC_TIMEOUT")
COLLECT_LOCK_TIMEOUT = _optional_float("COLLECT_LOCK_TIMEOUT")
EXPORTER_LISTEN_ADDR = os.getenv("EXPORTER_LISTEN_ADDR", "127.0.0.1:29090")
API_KEYS             = {k.strip() for k in os.getenv("API_KEYS", "").split(",") if k.strip()}
API_KEY_REVOKED      = {k.strip() for k in os.getenv("API_KEY_REVOKED", "").split(",") if k.strip()}
RATE_LIMIT           = os.getenv("RATE_LIMIT", "120/minute")
LOG_LEVEL            = os.getenv("LOG_LEVEL", "INFO").upper()


def parse_listen_addr(addr: str):
    host, sep, port = addr.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"invalid listen address {addr!r}, expected host:port")
    return host.strip("[]"), int(port)


# ---- Simple API-Key dependency ----
def require_api_key(x_api_key: Optional[str] = Header(None)):
    if API_KEYS:
        if not x_api_key or x_api_key not in API_KEYS or x_api_key in API_KEY_REVOKED:
            raise HTTPException(status_code=401, detail="missing/invalid api key")
