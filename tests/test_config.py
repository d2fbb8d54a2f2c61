"""
Tests for configuration models and loading.
"""

import json

import pytest
from pydantic import ValidationError

from cloud_data.config import (
    CloudDataConfig,
    CloudEnvironment,
    ConfigLoader,
    LoggingConfig,
    LogLevel,
)
from cloud_data.exceptions import ConfigurationError


class TestCloudDataConfig:
    """Test the data source configuration model."""

    def test_defaults(self):
        config = CloudDataConfig()

        assert config.environment == CloudEnvironment.DEVELOPMENT
        assert config.endpoint == "http://localhost:3000/test-runner-graphql"
        assert config.divergence_recovery_limit == 3
        assert config.version_header == "x-cloud-data-version"

    @pytest.mark.parametrize(
        "environment, endpoint",
        [
            ("staging", "https://dashboard-staging.cypress.io/test-runner-graphql"),
            ("production", "https://dashboard.cypress.io/test-runner-graphql"),
        ],
    )
    def test_endpoint_per_environment(self, environment, endpoint):
        assert CloudDataConfig(environment=environment).endpoint == endpoint

    def test_custom_remote_url(self):
        config = CloudDataConfig(
            environment="staging",
            remote_urls={"staging": "https://cloud.example.test/"},
            graphql_path="graphql",
        )

        assert config.endpoint == "https://cloud.example.test/graphql"

    def test_validation(self):
        with pytest.raises(ValidationError):
            CloudDataConfig(request_timeout=0)
        with pytest.raises(ValidationError):
            CloudDataConfig(divergence_recovery_limit=-1)
        with pytest.raises(ValidationError):
            CloudDataConfig(unknown_option=True)

    def test_validate_assignment(self):
        config = CloudDataConfig()

        with pytest.raises(ValidationError):
            config.environment = "moon"


class TestConfigLoader:
    """Test loading configuration from files and the environment."""

    def test_defaults_without_sources(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))

        config = ConfigLoader(environ={}).load_config()

        assert config == CloudDataConfig()

    def test_environment_variables(self):
        loader = ConfigLoader(
            environ={
                "CLOUD_DATA_ENV": "production",
                "CLOUD_DATA_CLIENT_VERSION": "9.9.9",
                "CLOUD_DATA_DIVERGENCE_RECOVERY_LIMIT": "5",
                "CLOUD_DATA_LOG_LEVEL": "DEBUG",
                "CLOUD_DATA_LOG_STRUCTURED": "true",
            }
        )

        config = loader.load_config()

        assert config.environment == CloudEnvironment.PRODUCTION
        assert config.client_version == "9.9.9"
        assert config.divergence_recovery_limit == 5
        assert config.logging.level == LogLevel.DEBUG
        assert config.logging.enable_structured is True

    def test_internal_environment_is_a_fallback(self):
        fallback = ConfigLoader(environ={"CLOUD_DATA_INTERNAL_ENV": "staging"}).load_config()
        explicit = ConfigLoader(
            environ={"CLOUD_DATA_ENV": "production", "CLOUD_DATA_INTERNAL_ENV": "staging"}
        ).load_config()

        assert fallback.environment == CloudEnvironment.STAGING
        assert explicit.environment == CloudEnvironment.PRODUCTION

    def test_file_with_environment_override(self, tmp_path):
        config_file = tmp_path / "cloud_data.json"
        config_file.write_text(
            json.dumps(
                {
                    "environment": "staging",
                    "request_timeout": 10,
                    "logging": {"level": "WARNING", "enable_console": False},
                }
            )
        )
        loader = ConfigLoader(environ={"CLOUD_DATA_LOG_LEVEL": "ERROR"})

        config = loader.load_config(config_file)

        assert config.environment == CloudEnvironment.STAGING
        assert config.request_timeout == 10
        assert config.logging.level == LogLevel.ERROR
        assert config.logging.enable_console is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigLoader(environ={}).load_config(tmp_path / "missing.json")

    def test_unsupported_format(self, tmp_path):
        config_file = tmp_path / "cloud_data.yaml"
        config_file.write_text("environment: staging")

        with pytest.raises(ConfigurationError):
            ConfigLoader(environ={}).load_config(config_file)

    def test_malformed_json(self, tmp_path):
        config_file = tmp_path / "cloud_data.json"
        config_file.write_text("{not json")

        with pytest.raises(ConfigurationError):
            ConfigLoader(environ={}).load_config(config_file)

    def test_invalid_values(self):
        with pytest.raises(ConfigurationError):
            ConfigLoader(environ={"CLOUD_DATA_ENV": "moon"}).load_config()

    @pytest.mark.parametrize(
        "raw, expected",
        [("yes", True), ("off", False), ("12", 12), ("2.5", 2.5), ("abc", "abc")],
    )
    def test_convert_env_value(self, raw, expected):
        assert ConfigLoader(environ={})._convert_env_value(raw) == expected


class TestLoggingConfig:
    def test_defaults(self):
        config = LoggingConfig()

        assert config.level == LogLevel.INFO
        assert config.mask_credentials is True
        assert config.component_levels == {}
