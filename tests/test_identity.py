from __future__ import annotations

import pytest

from deadservers.identity import Endpoint, ServerIdentity, is_same_endpoint


def test_identity_of_builds_endpoint() -> None:
    server = ServerIdentity.of("rs-1", 16020, 1700000000000)
    assert server.endpoint == Endpoint(host="rs-1", port=16020)
    assert server.host == "rs-1"
    assert server.port == 16020
    assert server.epoch == 1700000000000


def test_different_epochs_are_distinct() -> None:
    a1 = ServerIdentity.of("rs-1", 16020, 1)
    a2 = ServerIdentity.of("rs-1", 16020, 2)
    assert a1 != a2
    assert len({a1, a2}) == 2


def test_same_endpoint_ignores_epoch() -> None:
    a1 = ServerIdentity.of("rs-1", 16020, 1)
    a2 = ServerIdentity.of("rs-1", 16020, 2)
    other_port = ServerIdentity.of("rs-1", 16030, 1)
    other_host = ServerIdentity.of("rs-2", 16020, 1)

    assert a1.same_endpoint(a2)
    assert is_same_endpoint(a1, a2)
    assert not is_same_endpoint(a1, other_port)
    assert not is_same_endpoint(a1, other_host)


def test_identity_str() -> None:
    assert str(ServerIdentity.of("rs-1", 16020, 42)) == "rs-1,16020,42"


def test_identity_parse() -> None:
    server = ServerIdentity.parse("rs-1.example.com,16020,1700000000000")
    assert server == ServerIdentity.of("rs-1.example.com", 16020, 1700000000000)


def test_identity_parse_str_roundtrip() -> None:
    original = ServerIdentity.of("10.0.0.5", 60020, 99)
    assert ServerIdentity.parse(str(original)) == original


@pytest.mark.parametrize(
    "raw",
    [
        "rs-1,16020",
        "rs-1,16020,1,extra",
        ",16020,1",
        "rs-1,port,1",
        "rs-1,16020,epoch",
        "rs-1,70000,1",
        "",
    ],
)
def test_identity_parse_rejects_malformed(raw: str) -> None:
    with pytest.raises(ValueError):
        ServerIdentity.parse(raw)


def test_endpoint_parse_and_str() -> None:
    endpoint = Endpoint.parse("10.0.0.1:16020")
    assert endpoint == Endpoint(host="10.0.0.1", port=16020)
    assert str(endpoint) == "10.0.0.1:16020"


@pytest.mark.parametrize("raw", ["10.0.0.1", ":16020", "host:abc", "host:-1"])
def test_endpoint_parse_rejects_malformed(raw: str) -> None:
    with pytest.raises(ValueError):
        Endpoint.parse(raw)


def test_endpoint_ordering() -> None:
    endpoints = [
        Endpoint(host="rs-2", port=1),
        Endpoint(host="rs-1", port=2),
        Endpoint(host="rs-1", port=1),
    ]
    assert sorted(endpoints) == [
        Endpoint(host="rs-1", port=1),
        Endpoint(host="rs-1", port=2),
        Endpoint(host="rs-2", port=1),
    ]


def test_identity_is_frozen() -> None:
    server = ServerIdentity.of("rs-1", 16020, 1)
    with pytest.raises(AttributeError):
        server.epoch = 2  # type: ignore[misc]
