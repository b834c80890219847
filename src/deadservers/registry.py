"""In-memory registry of servers currently believed dead.

The registry records, for each dead server incarnation, the wall-clock time
it was declared dead, and counts how many dead servers are still being
processed by recovery logic.  When a network partition heals, a server may
come back under a new instance epoch at the same endpoint; the clean
operations let its startup path drop the record of the previous incarnation.

All state is guarded by a single ``threading.Lock`` so every operation is
atomic with respect to the others.  Read operations hand out copies.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import NamedTuple, TypeAlias

from deadservers.config import DeadServersConfig, RegistryConfig
from deadservers.identity import ServerIdentity, is_same_endpoint

__all__ = [
    "Clock",
    "DeadServerRegistry",
    "DeathRecord",
    "RegistrySnapshot",
    "current_time_millis",
]

logger = logging.getLogger("deadservers.registry")

Clock: TypeAlias = Callable[[], int]


def current_time_millis() -> int:
    return int(time.time() * 1000)


class DeathRecord(NamedTuple):
    """A dead server and the time (ms since the Unix epoch) it was recorded."""

    server: ServerIdentity
    death_time: int


@dataclass(frozen=True)
class RegistrySnapshot:
    """Death records and processing counter read under one lock acquisition.

    Parameters
    ----------
    records : tuple[DeathRecord, ...]
        Records sorted by ascending death time.
    processing : int
        Value of the processing counter at snapshot time.
    """

    records: tuple[DeathRecord, ...]
    processing: int

    @property
    def in_progress(self) -> bool:
        return self.processing != 0


class DeadServerRegistry:
    """Authoritative record of dead servers and of in-flight dead server processing.

    A server is added when the failure detector gives up on it; the same
    identity added again keeps its original death time.  Every ``add`` bumps
    the processing counter and every ``finish`` lowers it; the counter is not
    tied to any particular identity and is not checked against the map.

    Entries never expire.  They are only removed by
    ``clean_previous_instance`` / ``clean_all_previous_instances``, which match
    on endpoint alone so a restarted server can clear its former incarnation.

    Parameters
    ----------
    config : RegistryConfig | None
        Registry policies; defaults to the lenient ``RegistryConfig()``.
    clock : Clock
        Returns the current wall-clock time in milliseconds.

    Examples
    --------
    >>> registry = DeadServerRegistry()
    >>> rs1 = ServerIdentity.of("rs-1", 16020, 1)
    >>> registry.add(rs1)
    >>> registry.is_dead_server(rs1)
    True
    >>> registry.clean_previous_instance(ServerIdentity.of("rs-1", 16020, 2))
    True
    >>> registry.is_empty()
    True
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        *,
        clock: Clock = current_time_millis,
    ) -> None:
        self._config = config or RegistryConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._dead_servers: dict[ServerIdentity, int] = {}
        self._num_processing = 0

    @classmethod
    def from_config(
        cls,
        config: DeadServersConfig,
        *,
        clock: Clock = current_time_millis,
    ) -> DeadServerRegistry:
        return cls(config.registry, clock=clock)

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def add(self, server: ServerIdentity) -> None:
        """Record *server* as dead and count one more server being processed.

        The death time is only set the first time *server* is added.
        """
        with self._lock:
            self._num_processing += 1
            if server in self._dead_servers:
                return
            if self._config.single_instance_per_endpoint:
                replaced = self._remove_matching(server, limit=None)
                if replaced:
                    logger.debug(
                        "Dropped %d older instance(s) of %s",
                        len(replaced),
                        server.endpoint,
                    )
            now = self._clock()
            self._dead_servers[server] = now
            logger.debug("Recorded dead server %s at %d", server, now)

    def finish(self, server: ServerIdentity) -> None:
        """Count one dead server as processed.

        *server* is not looked up: this only lowers the processing counter.
        """
        with self._lock:
            if self._config.strict_processing and self._num_processing <= 0:
                logger.warning(
                    "Ignoring finish for %s: no dead server processing in progress",
                    server,
                )
                return
            self._num_processing -= 1
            if self._num_processing < 0:
                logger.warning(
                    "Processing counter went negative (%d) after finish for %s",
                    self._num_processing,
                    server,
                )

    def is_dead_server(self, server: ServerIdentity) -> bool:
        """Return ``True`` if this exact incarnation is recorded as dead."""
        with self._lock:
            return server in self._dead_servers

    def __contains__(self, server: object) -> bool:
        with self._lock:
            return server in self._dead_servers

    def are_dead_servers_in_progress(self) -> bool:
        """Return ``True`` while the processing counter is non-zero."""
        with self._lock:
            return self._num_processing != 0

    @property
    def num_processing(self) -> int:
        with self._lock:
            return self._num_processing

    def copy_server_names(self) -> set[ServerIdentity]:
        """Return a new set holding every dead server identity."""
        with self._lock:
            return set(self._dead_servers)

    def death_time_of(self, server: ServerIdentity) -> int | None:
        with self._lock:
            return self._dead_servers.get(server)

    def size(self) -> int:
        with self._lock:
            return len(self._dead_servers)

    def __len__(self) -> int:
        return self.size()

    def is_empty(self) -> bool:
        with self._lock:
            return not self._dead_servers

    def clean_previous_instance(self, new_server: ServerIdentity) -> bool:
        """Drop one recorded incarnation sharing *new_server*'s endpoint.

        The epoch of *new_server* is not compared against the recorded one.
        When several incarnations of the endpoint are recorded, the one
        recorded first is removed.

        Parameters
        ----------
        new_server : ServerIdentity
            The server announcing itself alive.

        Returns
        -------
        bool
            ``True`` if *new_server*'s endpoint was dead and an entry was
            removed.
        """
        with self._lock:
            removed = self._remove_matching(new_server, limit=1)
        if removed:
            logger.info(
                "Server %s is back, cleared previous instance %s",
                new_server,
                removed[0],
            )
            return True
        return False

    def clean_all_previous_instances(self, new_server: ServerIdentity) -> None:
        """Drop every recorded incarnation sharing *new_server*'s endpoint."""
        with self._lock:
            removed = self._remove_matching(new_server, limit=None)
        if removed:
            logger.debug(
                "Cleared %d previous instance(s) of %s",
                len(removed),
                new_server.endpoint,
            )

    def copy_dead_servers_since(self, since: int) -> list[DeathRecord]:
        """Return the servers that died at or after *since*, oldest first.

        Parameters
        ----------
        since : int
            Threshold in ms since the Unix epoch; ``0`` selects all.

        Returns
        -------
        list[DeathRecord]
            Records sorted by ascending death time.  The relative order of
            records sharing a death time is not part of the contract.
        """
        with self._lock:
            return self._records_since(since)

    def snapshot(self, since: int = 0) -> RegistrySnapshot:
        """Read records since *since* and the processing counter atomically."""
        with self._lock:
            return RegistrySnapshot(
                records=tuple(self._records_since(since)),
                processing=self._num_processing,
            )

    def _records_since(self, since: int) -> list[DeathRecord]:
        records = [
            DeathRecord(server, death_time)
            for server, death_time in self._dead_servers.items()
            if death_time >= since
        ]
        records.sort(key=lambda r: r.death_time)
        return records

    def _remove_matching(
        self, server: ServerIdentity, *, limit: int | None
    ) -> list[ServerIdentity]:
        # caller holds self._lock
        matches = [
            candidate
            for candidate in self._dead_servers
            if is_same_endpoint(candidate, server)
        ]
        if limit is not None:
            matches = matches[:limit]
        for candidate in matches:
            del self._dead_servers[candidate]
        return matches

    def __str__(self) -> str:
        with self._lock:
            return ", ".join(str(server) for server in self._dead_servers)

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"DeadServerRegistry(size={len(self._dead_servers)}, "
                f"processing={self._num_processing})"
            )
