"""Tests for FlowAuditConfig environment key handling."""

import pytest

from flowaudit.config import DEFAULT_COMPOSE_TIMEOUT, FlowAuditConfig


class TestConfigApiBase:
    """Tests for API base normalization and endpoint derivation."""

    def test_api_base_normalizes_and_derives_endpoint(self) -> None:
        """FLOWAUDIT_API_BASE normalizes base and derives the report endpoint."""
        config = FlowAuditConfig()

        config._set_from_key("FLOWAUDIT_API_BASE", "https://example.com/v1/")

        assert config.api_base == "https://example.com"
        assert config.report_endpoint == "https://example.com/v1/responses"

    def test_api_base_does_not_override_explicit_endpoint(self) -> None:
        """An explicit endpoint remains unchanged when API base is set."""
        config = FlowAuditConfig()
        config.report_endpoint = "https://llm.example.com/custom"

        config._set_from_key("FLOWAUDIT_API_BASE", "https://api.example.com")

        assert config.report_endpoint == "https://llm.example.com/custom"
        assert config.api_base == "https://api.example.com"


class TestConfigKeys:
    """Tests for individual keys."""

    def test_openai_key_is_accepted(self) -> None:
        config = FlowAuditConfig()

        config._set_from_key("OPENAI_API_KEY", "sk-test")

        assert config.api_key == "sk-test"

    def test_compose_timeout(self) -> None:
        config = FlowAuditConfig()

        config._set_from_key("FLOWAUDIT_COMPOSE_TIMEOUT", "2.5")
        assert config.compose_timeout == 2.5

        config._set_from_key("FLOWAUDIT_COMPOSE_TIMEOUT", "soon")
        assert config.compose_timeout == 2.5

    def test_model_and_categories(self) -> None:
        config = FlowAuditConfig()

        config._set_from_key("FLOWAUDIT_MODEL", "gpt-4o")
        config._set_from_key("FLOWAUDIT_CATEGORIES", "/tmp/categories.yaml")

        assert config.model == "gpt-4o"
        assert config.categories_file == "/tmp/categories.yaml"


class TestConfigLoad:
    def test_env_overrides_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_file = tmp_path / "config.env"
        env_file.write_text(
            "# comment\nFLOWAUDIT_MODEL=file-model\nFLOWAUDIT_API_KEY='file-key'\n",
            encoding="utf-8",
        )
        monkeypatch.setattr("flowaudit.config.CONFIG_PATHS", [env_file])
        for key in ("OPENAI_API_KEY", "FLOWAUDIT_API_KEY", "FLOWAUDIT_COMPOSE_TIMEOUT"):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setenv("FLOWAUDIT_MODEL", "env-model")

        config = FlowAuditConfig.load()

        assert config.model == "env-model"
        assert config.api_key == "file-key"
        assert config.compose_timeout == DEFAULT_COMPOSE_TIMEOUT

    def test_save_default_config(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("flowaudit.config.Path.home", lambda: tmp_path)
        config = FlowAuditConfig(api_key="saved-key")

        path = config.save_default_config()

        assert path == tmp_path / ".config" / "flowaudit" / "config.env"
        loaded = FlowAuditConfig()
        loaded._load_from_file(path)
        assert loaded.api_key == "saved-key"
