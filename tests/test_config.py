"""Tests for configuration loading and engine wiring."""

import json
from pathlib import Path

import pytest
import structlog

from freightmatch.app import build_engine, build_store, main
from freightmatch.core.config import ConfigManager, MatchingConfig
from freightmatch.core.logging import configure_logging
from freightmatch.data.models.actor import Actor
from freightmatch.store.memory import InMemoryLoadStore
from freightmatch.store.sql import SQLLoadStore

CONFIG_YAML = """
lifecycle:
  single_active_job: false
matching:
  vehicle_aliases:
    semi-truck: [semi, 18-wheeler]
"""


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    (tmp_path / "config.yaml").write_text(CONFIG_YAML)
    return tmp_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("FREIGHTMATCH_STORE", "DATABASE_URL", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(var, raising=False)


class TestConfigManager:
    def test_defaults_without_yaml(self, tmp_path: Path) -> None:
        config = ConfigManager(tmp_path)
        assert config.business_config == {}
        assert config.lifecycle.single_active_job is True
        assert config.matching.vehicle_aliases == {}

    def test_reads_yaml(self, config_dir: Path) -> None:
        config = ConfigManager(config_dir)
        assert config.lifecycle.single_active_job is False
        assert config.matching.canonical_vehicle("18-Wheeler") == "semi-truck"

    def test_env_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FREIGHTMATCH_STORE", "sql")
        monkeypatch.setenv("LOG_JSON", "true")
        env = ConfigManager(tmp_path).env
        assert env.store_backend == "sql"
        assert env.log_json is True
        assert env.log_level == "INFO"

    def test_shipped_config_is_valid(self) -> None:
        config = ConfigManager()
        assert config.lifecycle.single_active_job is True
        assert config.matching.canonical_vehicle("Tractor-Trailer") == "semi-truck"


class TestMatchingConfig:
    def test_unknown_vehicle_is_its_own_type(self) -> None:
        matching = MatchingConfig(vehicle_aliases={"flatbed": ["flat bed"]})
        assert matching.canonical_vehicle(" Reefer ") == "reefer"
        assert matching.canonical_vehicle("Flat Bed") == "flatbed"


class TestWiring:
    def test_memory_backend_by_default(self, config_dir: Path) -> None:
        engine = build_engine(ConfigManager(config_dir))
        assert isinstance(engine.store, InMemoryLoadStore)
        assert engine.coordinator.single_active_job is False

    def test_sql_backend(
        self, config_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FREIGHTMATCH_STORE", "sql")
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'wired.db'}")
        engine = build_engine(ConfigManager(config_dir))
        assert isinstance(engine.store, SQLLoadStore)

        load = engine.post(
            Actor.business("B"),
            {"origin": "Kochi", "destination": "Goa", "weight": 2, "price": 4000},
        )
        assert engine.get(load.id) == load

    def test_unknown_backend(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FREIGHTMATCH_STORE", "cassandra")
        with pytest.raises(ValueError, match="Unsupported store backend"):
            build_store(ConfigManager(config_dir))

    def test_explicit_store_wins(self, config_dir: Path) -> None:
        store = InMemoryLoadStore()
        engine = build_engine(ConfigManager(config_dir), store=store)
        assert engine.store is store
        assert engine.projector.store is store


class TestLogging:
    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("INFO", json_output=True)
        structlog.get_logger().info("load_posted", load_id="LD-1")
        line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert line["event"] == "load_posted"
        assert line["load_id"] == "LD-1"
        assert line["level"] == "info"
        assert "timestamp" in line

    def test_level_filtering(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("WARNING", json_output=True)
        structlog.get_logger().info("hidden")
        structlog.get_logger().warning("command_rejected")
        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "command_rejected" in out

    def test_demo_scenario(self, capsys: pytest.CaptureFixture[str]) -> None:
        main()
        out = capsys.readouterr().out
        assert "Mumbai -> Delhi [CLOSED]" in out
        assert "IN_TRANSIT" in out
        assert ": 10000" in out
        assert ": 0" in out
