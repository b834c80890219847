"""Dead server status reports for administrative views.

A ``DeadServerReport`` is a point-in-time, time-ordered audit of dead
servers together with the processing counter.  Reports are encoded to bytes
by a ``ReportCodec``: ``JsonReportCodec`` uses the standard library,
``MsgpackReportCodec`` requires the optional ``msgpack`` package
(``pip install deadservers[msgpack]``).
"""

from __future__ import annotations

import importlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from deadservers.config import ReportCodecName, ReportConfig
from deadservers.identity import ServerIdentity
from deadservers.registry import (
    Clock,
    DeadServerRegistry,
    DeathRecord,
    current_time_millis,
)

__all__ = [
    "DeadServerReport",
    "JsonReportCodec",
    "MsgpackReportCodec",
    "ReportCodec",
    "build_report",
    "codec_for",
    "export_report",
]

logger = logging.getLogger("deadservers.report")


@dataclass(frozen=True)
class DeadServerReport:
    """Snapshot of the registry as shown to operators.

    Parameters
    ----------
    generated_at : int
        Time the report was built (ms since the Unix epoch).
    since : int
        Death-time threshold the records were filtered with.
    processing : int
        Processing counter at snapshot time.
    records : tuple[DeathRecord, ...]
        Dead servers sorted by ascending death time.

    Examples
    --------
    >>> report = build_report(registry, since=0)
    >>> [str(r.server) for r in report.records]
    ['rs-1,16020,1', 'rs-2,16020,7']
    """

    generated_at: int
    since: int
    processing: int
    records: tuple[DeathRecord, ...]

    @property
    def in_progress(self) -> bool:
        return self.processing != 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "since": self.since,
            "in_progress": self.in_progress,
            "processing": self.processing,
            "records": [
                {"server": str(record.server), "death_time": record.death_time}
                for record in self.records
            ],
        }

    @staticmethod
    def from_dict(payload: object) -> DeadServerReport:
        """Rebuild a report from the layout produced by ``to_dict``.

        Raises
        ------
        ValueError
            If *payload* is not a mapping with the expected fields.
        """
        match payload:
            case {
                "generated_at": int() as generated_at,
                "since": int() as since,
                "processing": int() as processing,
                "records": list() as raw_records,
            }:
                pass
            case _:
                msg = f"Malformed dead server report: {payload!r}"
                raise ValueError(msg)

        records: list[DeathRecord] = []
        for raw in raw_records:
            match raw:
                case {"server": str() as server, "death_time": int() as death_time}:
                    records.append(
                        DeathRecord(ServerIdentity.parse(server), death_time)
                    )
                case _:
                    msg = f"Malformed death record: {raw!r}"
                    raise ValueError(msg)

        return DeadServerReport(
            generated_at=generated_at,
            since=since,
            processing=processing,
            records=tuple(records),
        )


def build_report(
    registry: DeadServerRegistry,
    since: int = 0,
    *,
    clock: Clock = current_time_millis,
) -> DeadServerReport:
    """Build a report from one consistent registry snapshot.

    Parameters
    ----------
    registry : DeadServerRegistry
        Registry to read.
    since : int
        Only include servers that died at or after this time; ``0`` for all.
    clock : Clock
        Source of the ``generated_at`` timestamp.
    """
    snapshot = registry.snapshot(since)
    return DeadServerReport(
        generated_at=clock(),
        since=since,
        processing=snapshot.processing,
        records=snapshot.records,
    )


@runtime_checkable
class ReportCodec(Protocol):
    def encode(self, report: DeadServerReport) -> bytes: ...
    def decode(self, data: bytes) -> DeadServerReport: ...


class JsonReportCodec:
    def encode(self, report: DeadServerReport) -> bytes:
        return json.dumps(report.to_dict()).encode("utf-8")

    def decode(self, data: bytes) -> DeadServerReport:
        payload: object = json.loads(data.decode("utf-8"))
        return DeadServerReport.from_dict(payload)


def _lazy_import(module_name: str, extra: str) -> Any:
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError:
        msg = f"'{module_name}' is required. Install with: pip install deadservers[{extra}]"
        raise ModuleNotFoundError(msg) from None


class MsgpackReportCodec:
    """MessagePack codec producing the same layout as ``JsonReportCodec``.

    Requires the optional ``msgpack`` package.
    """

    def encode(self, report: DeadServerReport) -> bytes:
        msgpack = _lazy_import("msgpack", "msgpack")
        return msgpack.packb(report.to_dict(), use_bin_type=True)  # type: ignore[no-any-return]

    def decode(self, data: bytes) -> DeadServerReport:
        msgpack = _lazy_import("msgpack", "msgpack")
        payload: object = msgpack.unpackb(data, raw=False)
        return DeadServerReport.from_dict(payload)


_CODECS: dict[str, type[ReportCodec]] = {
    "json": JsonReportCodec,
    "msgpack": MsgpackReportCodec,
}


def codec_for(name: ReportCodecName | str) -> ReportCodec:
    """Return the codec registered under *name*.

    Raises
    ------
    ValueError
        If *name* is not a known codec.
    """
    try:
        codec_cls = _CODECS[name]
    except KeyError:
        msg = f"Unknown report codec {name!r}, expected one of {sorted(_CODECS)}"
        raise ValueError(msg) from None
    logger.debug("Using %s report codec", name)
    return codec_cls()


def export_report(
    registry: DeadServerRegistry,
    config: ReportConfig,
    *,
    clock: Clock = current_time_millis,
) -> bytes:
    """Build a report with the configured threshold and encode it."""
    report = build_report(registry, config.since_ms, clock=clock)
    return codec_for(config.codec).encode(report)
