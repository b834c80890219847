"""Server identity types.

Provides ``Endpoint``, the network location of a node that survives process
restarts, and ``ServerIdentity``, an endpoint paired with the instance epoch
of one particular process bound to it.  Two identities with the same endpoint
but different epochs are successive incarnations of the same node.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering

__all__ = [
    "Endpoint",
    "ServerIdentity",
    "is_same_endpoint",
]


def _parse_port(raw: str, source: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        msg = f"Invalid port {raw!r} in {source!r}"
        raise ValueError(msg) from None
    if not 0 <= port <= 65535:
        msg = f"Port out of range in {source!r}: {port}"
        raise ValueError(msg)
    return port


@total_ordering
@dataclass(frozen=True)
class Endpoint:
    """Hostname and port of a node.

    Parameters
    ----------
    host : str
        Hostname or IP address.
    port : int
        TCP port the node listens on.

    Examples
    --------
    >>> Endpoint.parse("10.0.0.1:16020")
    Endpoint(host='10.0.0.1', port=16020)
    >>> str(Endpoint(host="rs-1", port=16020))
    'rs-1:16020'
    """

    host: str
    port: int

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Endpoint):
            return NotImplemented
        return (self.host, self.port) < (other.host, other.port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    @staticmethod
    def parse(raw: str) -> Endpoint:
        """Parse a ``host:port`` string.

        Raises
        ------
        ValueError
            If *raw* has no port, an empty host, or a non-integer port.
        """
        host, sep, port_str = raw.rpartition(":")
        if not sep or not host:
            msg = f"Invalid endpoint, expected 'host:port', got: {raw!r}"
            raise ValueError(msg)
        return Endpoint(host=host, port=_parse_port(port_str, raw))


@dataclass(frozen=True)
class ServerIdentity:
    """One incarnation of a server: its endpoint plus an instance epoch.

    The epoch is typically the process start time in milliseconds.  It is
    expected to grow across restarts of the same endpoint, but nothing here
    relies on that.

    Parameters
    ----------
    endpoint : Endpoint
        Where the server listens.
    epoch : int
        Token distinguishing successive processes on the same endpoint.

    Examples
    --------
    >>> a1 = ServerIdentity.of("rs-1", 16020, 1)
    >>> a2 = ServerIdentity.of("rs-1", 16020, 2)
    >>> a1 == a2
    False
    >>> a1.same_endpoint(a2)
    True
    >>> str(a1)
    'rs-1,16020,1'
    """

    endpoint: Endpoint
    epoch: int

    @staticmethod
    def of(host: str, port: int, epoch: int) -> ServerIdentity:
        return ServerIdentity(endpoint=Endpoint(host=host, port=port), epoch=epoch)

    @property
    def host(self) -> str:
        return self.endpoint.host

    @property
    def port(self) -> int:
        return self.endpoint.port

    def same_endpoint(self, other: ServerIdentity) -> bool:
        """Return ``True`` if *other* is bound to the same host and port."""
        return self.endpoint == other.endpoint

    def __str__(self) -> str:
        return f"{self.endpoint.host},{self.endpoint.port},{self.epoch}"

    @staticmethod
    def parse(raw: str) -> ServerIdentity:
        """Parse the canonical ``host,port,epoch`` form.

        Parameters
        ----------
        raw : str
            A string such as ``"rs-1.example.com,16020,1700000000000"``.

        Returns
        -------
        ServerIdentity

        Raises
        ------
        ValueError
            If *raw* does not have exactly three comma-separated parts, the
            host is empty, or port/epoch are not integers.

        Examples
        --------
        >>> ServerIdentity.parse("rs-1,16020,42").epoch
        42
        """
        parts = raw.split(",")
        if len(parts) != 3 or not parts[0]:
            msg = f"Invalid server identity, expected 'host,port,epoch', got: {raw!r}"
            raise ValueError(msg)
        host, port_str, epoch_str = parts
        try:
            epoch = int(epoch_str)
        except ValueError:
            msg = f"Invalid epoch {epoch_str!r} in {raw!r}"
            raise ValueError(msg) from None
        return ServerIdentity.of(host, _parse_port(port_str, raw), epoch)


def is_same_endpoint(a: ServerIdentity, b: ServerIdentity) -> bool:
    """Weak identity match: same host and port, epoch ignored."""
    return a.endpoint == b.endpoint
