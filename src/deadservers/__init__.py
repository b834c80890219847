from deadservers.config import (
    DeadServersConfig,
    RegistryConfig,
    ReportConfig,
    discover_config,
    load_config,
)
from deadservers.identity import Endpoint, ServerIdentity, is_same_endpoint
from deadservers.registry import (
    DeadServerRegistry,
    DeathRecord,
    RegistrySnapshot,
    current_time_millis,
)
from deadservers.report import (
    DeadServerReport,
    JsonReportCodec,
    MsgpackReportCodec,
    ReportCodec,
    build_report,
    codec_for,
    export_report,
)

__all__ = [
    # Identity
    "Endpoint",
    "ServerIdentity",
    "is_same_endpoint",
    # Registry
    "DeadServerRegistry",
    "DeathRecord",
    "RegistrySnapshot",
    "current_time_millis",
    # Reports
    "DeadServerReport",
    "ReportCodec",
    "JsonReportCodec",
    "MsgpackReportCodec",
    "build_report",
    "codec_for",
    "export_report",
    # Config
    "DeadServersConfig",
    "RegistryConfig",
    "ReportConfig",
    "discover_config",
    "load_config",
]
