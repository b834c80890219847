from __future__ import annotations

from pathlib import Path

import pytest

from deadservers.config import (
    DeadServersConfig,
    RegistryConfig,
    ReportConfig,
    discover_config,
    load_config,
)


# ---------------------------------------------------------------------------
# Config dataclass defaults
# ---------------------------------------------------------------------------


class TestRegistryConfig:
    def test_defaults(self) -> None:
        cfg = RegistryConfig()
        assert cfg.single_instance_per_endpoint is False
        assert cfg.strict_processing is False

    def test_frozen(self) -> None:
        cfg = RegistryConfig()
        with pytest.raises(AttributeError):
            cfg.strict_processing = True  # type: ignore[misc]


class TestReportConfig:
    def test_defaults(self) -> None:
        cfg = ReportConfig()
        assert cfg.codec == "json"
        assert cfg.since_ms == 0


class TestDeadServersConfigDefaults:
    def test_all_defaults(self) -> None:
        cfg = DeadServersConfig()
        assert cfg.name == "deadservers"
        assert cfg.registry == RegistryConfig()
        assert cfg.report == ReportConfig()


# ---------------------------------------------------------------------------
# TOML loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "deadservers.toml"
        path.write_text(
            """
[system]
name = "master-1"

[registry]
single_instance_per_endpoint = true
strict_processing = true

[report]
codec = "msgpack"
since_ms = 1700000000000
"""
        )
        cfg = load_config(path)
        assert cfg.name == "master-1"
        assert cfg.registry.single_instance_per_endpoint is True
        assert cfg.registry.strict_processing is True
        assert cfg.report.codec == "msgpack"
        assert cfg.report.since_ms == 1700000000000

    def test_partial_file_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "deadservers.toml"
        path.write_text("[registry]\nstrict_processing = true\n")
        cfg = load_config(path)
        assert cfg.name == "deadservers"
        assert cfg.registry.single_instance_per_endpoint is False
        assert cfg.registry.strict_processing is True
        assert cfg.report == ReportConfig()

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "deadservers.toml"
        path.write_text("")
        assert load_config(path) == DeadServersConfig()

    def test_missing_explicit_path_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_unknown_key_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "deadservers.toml"
        path.write_text("[registry]\nbogus = 1\n")
        with pytest.raises(TypeError):
            load_config(path)

    def test_no_file_discovered_returns_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("deadservers.config.discover_config", lambda: None)
        assert load_config() == DeadServersConfig()

    def test_discovered_file_is_loaded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "deadservers.toml").write_text('[system]\nname = "found"\n')
        monkeypatch.chdir(tmp_path)
        assert load_config().name == "found"


class TestDiscoverConfig:
    def test_finds_in_parent(self, tmp_path: Path) -> None:
        (tmp_path / "deadservers.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert discover_config(nested) == (tmp_path / "deadservers.toml").resolve()

    def test_finds_in_start_dir(self, tmp_path: Path) -> None:
        (tmp_path / "deadservers.toml").write_text("")
        assert discover_config(tmp_path) == (tmp_path / "deadservers.toml").resolve()
