"""TOML-based configuration for the dead server registry.

Provides ``load_config`` / ``discover_config`` for loading
``deadservers.toml`` and a small hierarchy of frozen dataclasses for the
registry policies and the status report settings.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, TypeAlias

__all__ = [
    "CONFIG_FILE_NAME",
    "DeadServersConfig",
    "RegistryConfig",
    "ReportCodecName",
    "ReportConfig",
    "discover_config",
    "load_config",
]

logger = logging.getLogger("deadservers.config")

CONFIG_FILE_NAME = "deadservers.toml"

ReportCodecName: TypeAlias = Literal["json", "msgpack"]


@dataclass(frozen=True)
class RegistryConfig:
    """Policies applied by ``DeadServerRegistry``.

    Parameters
    ----------
    single_instance_per_endpoint : bool
        When ``True``, adding an identity first drops every recorded
        incarnation of the same endpoint with a different epoch, so at most
        one entry per endpoint exists.  Off by default: several incarnations
        of one endpoint may be recorded side by side.
    strict_processing : bool
        When ``True``, ``finish`` never lets the processing counter drop
        below zero.  Off by default: unmatched ``finish`` calls drive the
        counter negative.

    Examples
    --------
    >>> RegistryConfig(single_instance_per_endpoint=True)
    RegistryConfig(single_instance_per_endpoint=True, strict_processing=False)
    """

    single_instance_per_endpoint: bool = False
    strict_processing: bool = False


@dataclass(frozen=True)
class ReportConfig:
    """Status report export settings.

    Parameters
    ----------
    codec : ReportCodecName
        Wire encoding for reports: ``"json"`` or ``"msgpack"``.
    since_ms : int
        Default death-time threshold (ms since the Unix epoch); ``0``
        includes every recorded death.

    Examples
    --------
    >>> ReportConfig(codec="msgpack")
    ReportConfig(codec='msgpack', since_ms=0)
    """

    codec: ReportCodecName = "json"
    since_ms: int = 0


@dataclass(frozen=True)
class DeadServersConfig:
    """Top-level configuration container.

    Typically created via ``load_config()`` but can be constructed manually.

    Parameters
    ----------
    name : str
        Logical name of the coordinator owning the registry.
    registry : RegistryConfig
        Registry policies.
    report : ReportConfig
        Status report settings.

    Examples
    --------
    >>> config = DeadServersConfig(name="master-1")
    >>> config.registry.strict_processing
    False
    """

    name: str = "deadservers"
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``deadservers.toml``.

    Parameters
    ----------
    start : Path | None
        Directory to start searching from.

    Returns
    -------
    Path | None
        Path to the discovered config file, or ``None`` if not found.
    """
    current = start or Path.cwd()
    current = current.resolve()
    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> DeadServersConfig:
    """Load a ``DeadServersConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``deadservers.toml`` by walking up
    from the current working directory.  Returns the default config if no
    file is found.

    Parameters
    ----------
    path : Path | None
        Explicit path to a TOML config file.

    Returns
    -------
    DeadServersConfig

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    TypeError
        If a section contains keys the matching dataclass does not know.

    Examples
    --------
    >>> config = load_config(Path("deadservers.toml"))
    >>> config.report.codec
    'json'
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE_NAME)
            return DeadServersConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)
    logger.debug("Loaded config from %s", path)

    system_raw = raw.get("system", {})
    return DeadServersConfig(
        name=system_raw.get("name", "deadservers"),
        registry=RegistryConfig(**raw.get("registry", {})),
        report=ReportConfig(**raw.get("report", {})),
    )
