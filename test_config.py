import pytest

from lnd_exporter.__main__ import parse_args
from lnd_exporter.config import parse_listen_addr


def test_parse_listen_addr():
    assert parse_listen_addr("127.0.0.1:29090") == ("127.0.0.1", 29090)
    assert parse_listen_addr("[::1]:9000") == ("::1", 9000)
    with pytest.raises(ValueError):
        parse_listen_addr("localhost")
    with pytest.raises(ValueError):
        parse_listen_addr(":9000")


def test_cli_flags_override_defaults():
    args = parse_args([
        "--lnd-endpoint", "https://node:8080",
        "--macaroon-path", "/lnd/readonly.macaroon",
        "--exporter-listen-addr", "0.0.0.0:9100",
        "--rpc-timeout", "2.5",
    ])
    assert args.lnd_endpoint == "https://node:8080"
    assert args.macaroon_path == "/lnd/readonly.macaroon"
    assert (args.host, args.port) == ("0.0.0.0", 9100)
    assert args.rpc_timeout == 2.5


def test_cli_rejects_bad_listen_addr():
    with pytest.raises(SystemExit):
        parse_args(["--exporter-listen-addr", "nowhere"])
