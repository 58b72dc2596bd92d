"""Unit tests for config/connection.py and config/settings.py.

ClientConfig must reject malformed connection values with ConfigError before
any network access; Settings is the only component that reads CMS_* variables.
"""

from __future__ import annotations

import pydantic
import pytest

from cms_client.config.connection import DEFAULT_TIMEOUT_SECONDS, ClientConfig
from cms_client.config.settings import Settings, get_settings
from cms_client.core.exceptions import ConfigError

_VALID = {
    "api_url": "https://api.example-cms.io/v1",
    "api_key": "sk_test_123",
    "project_id": "blog",
}


class TestClientConfigBuild:
    def test_valid_mapping(self) -> None:
        config = ClientConfig.build(_VALID)

        assert config.api_url == "https://api.example-cms.io/v1"
        assert config.project_id == "blog"
        assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS

    def test_trailing_slash_and_whitespace_stripped(self) -> None:
        config = ClientConfig.build(
            api_url=" https://api.example-cms.io/v1/ ", api_key=" k ", project_id=" p "
        )
        assert config.api_url == "https://api.example-cms.io/v1"
        assert config.api_key == "k"
        assert config.project_id == "p"

    def test_keyword_overrides_win(self) -> None:
        config = ClientConfig.build(_VALID, project_id="shop")
        assert config.project_id == "shop"

    def test_none_overrides_ignored(self) -> None:
        config = ClientConfig.build(_VALID, api_url=None)
        assert config.api_url == _VALID["api_url"]

    def test_existing_config_returned_unchanged(self) -> None:
        config = ClientConfig.build(_VALID)
        assert ClientConfig.build(config) is config

    @pytest.mark.parametrize(
        ("setting", "value"),
        [
            ("api_url", ""),
            ("api_url", "   "),
            ("api_url", "api.example-cms.io"),
            ("api_url", "ftp://api.example-cms.io"),
            ("api_url", "https://"),
            ("api_url", "https://api.example-cms.io/v1?x=1"),
            ("api_key", ""),
            ("project_id", "  "),
            ("timeout_seconds", 0),
        ],
    )
    def test_malformed_value_raises_config_error(self, setting: str, value: object) -> None:
        with pytest.raises(ConfigError) as exc_info:
            ClientConfig.build({**_VALID, setting: value})

        assert exc_info.value.setting == setting
        assert isinstance(exc_info.value.__cause__, pydantic.ValidationError)

    @pytest.mark.parametrize("data", ["https://api.example-cms.io/v1", ["api_url"], 42])
    def test_non_mapping_config_raises_config_error(self, data: object) -> None:
        with pytest.raises(ConfigError):
            ClientConfig.build(data)  # type: ignore[arg-type]

    def test_missing_value_raises_config_error(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            ClientConfig.build({"api_url": _VALID["api_url"], "api_key": "k"})
        assert exc_info.value.setting == "project_id"

    def test_config_is_immutable(self) -> None:
        config = ClientConfig.build(_VALID)
        with pytest.raises(pydantic.ValidationError):
            config.api_key = "other"  # type: ignore[misc]

    def test_repr_hides_api_key(self) -> None:
        assert "sk_test_123" not in repr(ClientConfig.build(_VALID))


class TestSettings:
    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CMS_API_URL", "https://cms.local/api")
        monkeypatch.setenv("CMS_API_KEY", "env-key")
        monkeypatch.setenv("CMS_PROJECT_ID", "env-project")
        monkeypatch.setenv("CMS_TIMEOUT_SECONDS", "5")

        config = Settings().to_client_config()

        assert config.api_url == "https://cms.local/api"
        assert config.api_key == "env-key"
        assert config.project_id == "env-project"
        assert config.timeout_seconds == 5.0

    def test_reads_dotenv_file(self, tmp_path) -> None:
        (tmp_path / ".env").write_text(
            "CMS_API_URL=https://cms.local/api\nCMS_API_KEY=file-key\nCMS_PROJECT_ID=file-project\n",
            encoding="utf-8",
        )
        settings = Settings()
        assert settings.api_key == "file-key"
        assert settings.project_id == "file-project"

    def test_missing_environment_raises_config_error(self) -> None:
        with pytest.raises(ConfigError):
            Settings().to_client_config()

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_log_level_default(self) -> None:
        assert Settings().log_level == "INFO"
