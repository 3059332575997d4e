import grpc
import httpx
import pytest

from conifer.headers import build_user_agent_grpc
from conifer.index_connection import IndexConnection, normalize_host, open_channel


class _Channel:
    def __init__(self, kind, target, credentials, options):
        self.kind = kind
        self.target = target
        self.credentials = credentials
        self.options = dict(options)
        self.closed = False

    def unary_unary(self, *args, **kwargs):
        return lambda *a, **kw: None

    def close(self):
        self.closed = True


@pytest.fixture
def channels(monkeypatch):
    opened = []

    def secure(target, credentials, options=None):
        opened.append(_Channel("secure", target, credentials, options or ()))
        return opened[-1]

    def insecure(target, options=None):
        opened.append(_Channel("insecure", target, None, options or ()))
        return opened[-1]

    monkeypatch.setattr(grpc, "secure_channel", secure)
    monkeypatch.setattr(grpc, "insecure_channel", insecure)
    return opened


@pytest.mark.parametrize("host, expected", [
    ("idx-1.svc.example.io", ("idx-1.svc.example.io", True)),
    ("https://idx-1.svc.example.io", ("idx-1.svc.example.io", True)),
    ("http://localhost:5081", ("localhost:5081", False)),
    ("localhost:5081", ("localhost:5081", True)),
])
def test_normalize_host(host, expected):
    assert normalize_host(host) == expected


def test_tls_channel_for_https_and_bare_hosts(channels):
    open_channel("idx-1.svc.example.io:443", True, source_tag="my_app")
    ch = channels[0]
    assert ch.kind == "secure"
    assert isinstance(ch.credentials, grpc.ChannelCredentials)
    assert ch.options["grpc.primary_user_agent"] == build_user_agent_grpc("my_app")
    assert ch.options["grpc.default_authority"] == "idx-1.svc.example.io:443"


def test_plaintext_channel_keeps_extra_options(channels):
    open_channel("localhost:5081", False, options=[("grpc.max_receive_message_length", 1024)])
    ch = channels[0]
    assert ch.kind == "insecure"
    assert ch.options["grpc.max_receive_message_length"] == 1024
    assert ch.options["grpc.default_authority"] == "localhost:5081"


def test_connection_picks_channel_from_host_scheme(channels):
    http = httpx.Client()
    for host in ("https://idx-1.svc.example.io", "idx-2.svc.example.io", "http://localhost:5081"):
        IndexConnection(host, http=http, rest_headers={}).close()
    assert [(c.kind, c.target) for c in channels] == [
        ("secure", "idx-1.svc.example.io"),
        ("secure", "idx-2.svc.example.io"),
        ("insecure", "localhost:5081"),
    ]
    assert all(c.closed for c in channels)
    http.close()


def test_shared_channel_closes_once_for_all_namespaces(channels):
    conn = IndexConnection("http://localhost:5081", http=httpx.Client(), rest_headers={}, namespace="a")
    other = conn.with_namespace("b")
    assert (conn.namespace, other.namespace) == ("a", "b")
    other.close()
    assert len(channels) == 1
    assert channels[0].closed
