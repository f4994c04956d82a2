import json

import pytest

from amenibook.api.base import BookingClientError
from amenibook.api.client_factory import create_client, load_client_from_config
from amenibook.api.respage_client import ResPageClient
from amenibook.app import create_app
from amenibook.config import ConfigError, load_config, merge_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("AMENIBOOK_CONFIG", "AMENIBOOK_DATABASE_URL", "AMENIBOOK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:

    def test_defaults_when_file_missing(self, tmp_path):
        config = load_config(str(tmp_path / "missing.json"))

        assert config["respage"]["campaign_id"] == "42dba40a50910a23a43548b2302f86ce"
        assert config["respage"]["timezone"] == "America/Los_Angeles"
        assert config["scheduler"]["interval_minutes"] == 15
        assert config["max_failed_attempts"] == 10

    def test_file_merges_per_section(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "respage": {"timeout": 10},
            "scheduler": {"interval_minutes": 5},
            "database_url": "sqlite:///:memory:",
        }))

        config = load_config(str(path))

        assert config["respage"]["timeout"] == 10
        assert config["respage"]["base_url"] == "https://app.respage.com/public"
        assert config["scheduler"] == {"interval_minutes": 5, "health_interval_minutes": 60}
        assert config["database_url"] == "sqlite:///:memory:"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"database_url": "sqlite:///file.db"}))
        monkeypatch.setenv("AMENIBOOK_CONFIG", str(path))
        monkeypatch.setenv("AMENIBOOK_DATABASE_URL", "postgresql://db/amenibook")
        monkeypatch.setenv("AMENIBOOK_LOG_LEVEL", "DEBUG")

        config = load_config()

        assert config["database_url"] == "postgresql://db/amenibook"
        assert config["log_level"] == "DEBUG"

    def test_merge_keeps_sibling_keys(self, tmp_path):
        config = load_config(str(tmp_path / "missing.json"))

        merge_config(config, {"scheduler": {"interval_minutes": 5}, "log_level": "DEBUG"})

        assert config["scheduler"] == {"interval_minutes": 5, "health_interval_minutes": 60}
        assert config["log_level"] == "DEBUG"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_non_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[]")

        with pytest.raises(ConfigError):
            load_config(str(path))


class TestClientFactory:

    def test_respage_client_from_config(self, tmp_path):
        config = load_config(str(tmp_path / "missing.json"))
        config["respage"]["timezone"] = "America/Denver"

        client = load_client_from_config(config)

        assert isinstance(client, ResPageClient)
        assert client.platform_name == "respage"
        assert client.timezone == "America/Denver"

    def test_unknown_platform(self):
        with pytest.raises(BookingClientError):
            create_client("bookingsync", {})

    def test_missing_section(self):
        with pytest.raises(BookingClientError):
            load_client_from_config({"database_url": "sqlite:///:memory:"})

    def test_app_processor_uses_configured_timezone(self, tmp_path):
        config = load_config(str(tmp_path / "missing.json"))
        config["database_url"] = "sqlite:///:memory:"
        config["respage"]["timezone"] = "America/Denver"

        app = create_app(config)

        assert app.service.processor.timezone == "America/Denver"
