"""Tests for TelemetryConfig."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from otelbridge._internal.config import (
    TelemetryConfig,
    _get_env,
    _get_env_bool,
    _to_sample_rate,
)
from otelbridge._internal.enums import LogLevelType
from otelbridge._internal.exceptions import ConfigurationError

# =============================================================================
# TelemetryConfig Tests
# =============================================================================


class TestTelemetryConfig:
    """Tests for TelemetryConfig construction."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = TelemetryConfig()

        assert config.enabled is False
        assert config.collector_host is None
        assert config.level is LogLevelType.INFORMATION
        assert config.environment is None
        assert config.service_name == "DyingStar"
        assert config.service_namespace == "GameEngine"
        assert config.is_server is False
        assert config.sample_rate == 1.0

    def test_from_mapping(self) -> None:
        """Test configuration from a settings section."""
        config = TelemetryConfig.from_mapping(
            {
                "enabled": True,
                "collectorHost": "http://collector:4318",
                "level": "Debug",
                "environment": "staging",
                "serviceName": "DyingStarServer",
                "serviceNamespace": "Backend",
                "server": "true",
                "sampleRate": "0.25",
            }
        )

        assert config.enabled is True
        assert config.collector_host == "http://collector:4318"
        assert config.level is LogLevelType.DEBUG
        assert config.environment == "staging"
        assert config.service_name == "DyingStarServer"
        assert config.service_namespace == "Backend"
        assert config.is_server is True
        assert config.sample_rate == 0.25

    def test_from_mapping_accepts_legacy_environment_key(self) -> None:
        """Test that the environnement spelling is read."""
        config = TelemetryConfig.from_mapping({"environnement": "prod"})
        assert config.environment == "prod"

    def test_from_mapping_prefers_environment_key(self) -> None:
        """Test that environment wins over environnement."""
        config = TelemetryConfig.from_mapping({"environment": "prod", "environnement": "dev"})
        assert config.environment == "prod"

    def test_from_mapping_bogus_level_means_information(self) -> None:
        """Test that an unparseable level falls back to Information."""
        config = TelemetryConfig.from_mapping({"level": "Verbose"})
        assert config.level is LogLevelType.INFORMATION

    def test_from_mapping_empty(self) -> None:
        """Test that an empty section gives the defaults."""
        config = TelemetryConfig.from_mapping({})

        assert config == TelemetryConfig()

    def test_from_mapping_blank_strings_use_defaults(self) -> None:
        """Test that blank values do not override defaults."""
        config = TelemetryConfig.from_mapping({"serviceName": "  ", "collectorHost": ""})

        assert config.service_name == "DyingStar"
        assert config.collector_host is None

    def test_from_environment(self) -> None:
        """Test configuration from environment variables."""
        with patch.dict(
            os.environ,
            {
                "OTELBRIDGE_ENABLED": "true",
                "OTELBRIDGE_COLLECTOR_HOST": "http://collector:4318",
                "OTELBRIDGE_LEVEL": "Warning",
                "OTELBRIDGE_ENVIRONMENT": "production",
                "OTELBRIDGE_SERVICE_NAME": "test-service",
                "OTELBRIDGE_SERVICE_NAMESPACE": "Tests",
                "OTELBRIDGE_SERVER": "1",
                "OTELBRIDGE_SAMPLE_RATE": "0.5",
            },
            clear=True,
        ):
            config = TelemetryConfig.from_environment()

        assert config.enabled is True
        assert config.collector_host == "http://collector:4318"
        assert config.level is LogLevelType.WARNING
        assert config.environment == "production"
        assert config.service_name == "test-service"
        assert config.service_namespace == "Tests"
        assert config.is_server is True
        assert config.sample_rate == 0.5

    def test_from_environment_otel_fallback(self) -> None:
        """Test that OTEL env vars are used as fallback."""
        with patch.dict(
            os.environ,
            {
                "OTEL_SERVICE_NAME": "otel-service",
                "OTEL_EXPORTER_OTLP_ENDPOINT": "http://otel:4318",
                "OTEL_TRACES_SAMPLER_ARG": "0.1",
            },
            clear=True,
        ):
            config = TelemetryConfig.from_environment()

        assert config.service_name == "otel-service"
        assert config.collector_host == "http://otel:4318"
        assert config.sample_rate == 0.1

    def test_from_empty_environment(self) -> None:
        """Test that an empty environment gives a disabled config."""
        with patch.dict(os.environ, {}, clear=True):
            config = TelemetryConfig.from_environment()

        assert config == TelemetryConfig()

    def test_invalid_sample_rate_uses_default(self) -> None:
        """Test that a non-numeric sample rate is ignored."""
        with patch.dict(os.environ, {"OTELBRIDGE_SAMPLE_RATE": "often"}, clear=True):
            config = TelemetryConfig.from_environment()

        assert config.sample_rate == 1.0

    def test_merge_with(self) -> None:
        """Test merging configuration with explicit values."""
        base_config = TelemetryConfig(service_name="base-service", environment="dev")

        merged = base_config.merge_with(service_name="new-service", environment=None, enabled=True)

        assert merged.service_name == "new-service"
        assert merged.environment == "dev"
        assert merged.enabled is True
        assert base_config.enabled is False

    def test_merge_with_unknown_field_raises(self) -> None:
        """Test that a misspelled override is rejected."""
        with pytest.raises(TypeError):
            TelemetryConfig().merge_with(servicename="typo")


# =============================================================================
# Endpoint and Resource Tests
# =============================================================================


class TestOtlpEndpoint:
    """Tests for TelemetryConfig.otlp_endpoint."""

    def test_joins_signal_path(self) -> None:
        """Test that the signal path is appended to the host."""
        config = TelemetryConfig(collector_host="http://collector:4318")
        assert config.otlp_endpoint("/v1/traces") == "http://collector:4318/v1/traces"

    def test_trailing_slash_is_dropped(self) -> None:
        """Test that a trailing slash does not double up."""
        config = TelemetryConfig(collector_host="https://collector.example.com/")
        assert config.otlp_endpoint("/v1/logs") == "https://collector.example.com/v1/logs"

    def test_missing_host_raises(self) -> None:
        """Test that a missing host is a configuration error."""
        with pytest.raises(ConfigurationError):
            TelemetryConfig().otlp_endpoint("/v1/traces")

    @pytest.mark.parametrize("host", ["collector:4318", "ftp://collector", "/v1", "http://"])
    def test_relative_or_non_http_host_raises(self, host: str) -> None:
        """Test that the host must be an absolute http(s) URL."""
        with pytest.raises(ConfigurationError) as exc_info:
            TelemetryConfig(collector_host=host).otlp_endpoint("/v1/traces")

        assert exc_info.value.details == {"collectorHost": host}


class TestCreateResource:
    """Tests for TelemetryConfig.create_resource."""

    def test_service_identity(self) -> None:
        """Test creating OTEL resource from config."""
        config = TelemetryConfig(environment="production")

        attrs = dict(config.create_resource().attributes)

        assert attrs["service.name"] == "DyingStar"
        assert attrs["service.namespace"] == "GameEngine"
        assert attrs["telemetry.sdk.name"] == "otelbridge"
        assert attrs["deployment.environment.name"] == "production"
        assert attrs["environment"] == "production"
        assert "service.instance.id" in attrs
        assert "process.pid" in attrs

    def test_origin_attribute(self) -> None:
        """Test that origin tells server and client apart."""
        server = TelemetryConfig(is_server=True).create_resource()
        client = TelemetryConfig(is_server=False).create_resource()

        assert server.attributes["origin"] == "server"
        assert client.attributes["origin"] == "client"

    def test_environment_omitted_when_unset(self) -> None:
        """Test that no environment attribute is set without a value."""
        attrs = dict(TelemetryConfig().create_resource().attributes)

        assert "environment" not in attrs
        assert "deployment.environment.name" not in attrs

    def test_instance_id_is_stable(self) -> None:
        """Test that one config always reports the same instance id."""
        config = TelemetryConfig()
        first = config.create_resource().attributes["service.instance.id"]
        second = config.merge_with(service_name="other").create_resource().attributes["service.instance.id"]

        assert first == second


class TestEnvHelpers:
    """Tests for environment variable helper functions."""

    def test_get_env_first_match(self) -> None:
        """Test _get_env returns first matching value."""
        with patch.dict(os.environ, {"VAR1": "value1", "VAR2": "value2"}):
            assert _get_env("VAR1", "VAR2") == "value1"

    def test_get_env_skips_empty(self) -> None:
        """Test _get_env skips empty values."""
        with patch.dict(os.environ, {"VAR1": "", "VAR2": "value2"}):
            assert _get_env("VAR1", "VAR2") == "value2"

    def test_get_env_default(self) -> None:
        """Test _get_env returns default if none set."""
        with patch.dict(os.environ, {}, clear=True):
            assert _get_env("VAR1", "VAR2", default="default") == "default"

    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "on"])
    def test_get_env_bool_true(self, value: str) -> None:
        """Test _get_env_bool with true values."""
        with patch.dict(os.environ, {"TEST_BOOL": value}):
            assert _get_env_bool("TEST_BOOL") is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "off", "maybe"])
    def test_get_env_bool_false(self, value: str) -> None:
        """Test _get_env_bool with false values."""
        with patch.dict(os.environ, {"TEST_BOOL": value}):
            assert _get_env_bool("TEST_BOOL", default=True) is False

    @pytest.mark.parametrize(("value", "expected"), [("0.75", 0.75), ("0", 0.0), ("1", 1.0)])
    def test_sample_rate_in_range(self, value: str, expected: float) -> None:
        """Test that sample rates between 0 and 1 are kept."""
        assert _to_sample_rate(value) == expected

    @pytest.mark.parametrize("value", ["2", "-0.1", "nan", "often", None, True])
    def test_sample_rate_out_of_range_means_one(self, value: object) -> None:
        """Test that unusable sample rates fall back to 1.0."""
        assert _to_sample_rate(value) == 1.0
