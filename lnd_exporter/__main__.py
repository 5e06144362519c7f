import argparse

import uvicorn

from . import __version__
from .config import (
    EXPORTER_LISTEN_ADDR,
    LND_MACAROON_PATH,
    LND_REST_URL,
    LND_RPC_TIMEOUT,
    LND_TLS_CERT_PATH,
    LOG_LEVEL,
    parse_listen_addr,
)
from .collector import build_collector
from .logging import log
from .main import create_app


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="lnd-exporter", description="Prometheus exporter for an LND node")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--lnd-endpoint", default=LND_REST_URL, help="LND REST endpoint")
    parser.add_argument("--macaroon-path", default=LND_MACAROON_PATH)
    parser.add_argument("--tls-cert-path", default=LND_TLS_CERT_PATH)
    parser.add_argument("--exporter-listen-addr", default=EXPORTER_LISTEN_ADDR, help="host:port to serve /metrics on")
    parser.add_argument("--rpc-timeout", type=float, default=LND_RPC_TIMEOUT, help="seconds per LND call, unbounded if unset")
    args = parser.parse_args(argv)
    try:
        args.host, args.port = parse_listen_addr(args.exporter_listen_addr)
    except ValueError as e:
        parser.error(str(e))
    return args


def main(argv=None):
    args = parse_args(argv)
    collector = build_collector(
        url=args.lnd_endpoint,
        macaroon_path=args.macaroon_path,
        tls_cert_path=args.tls_cert_path,
        rpc_timeout=args.rpc_timeout,
    )
    app = create_app(collector)
    log.info("connected", lnd_endpoint=args.lnd_endpoint)
    log.info("exporter_listening", host=args.host, port=args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=LOG_LEVEL.lower(), access_log=False)


if __name__ == "__main__":
    main()
