"""Tests for nrforwarder/config.py — Settings and load_settings."""

import dataclasses

import pytest

from nrforwarder.config import (
    DEFAULT_LOG_ENDPOINT,
    DEFAULT_TRACE_ENDPOINT,
    Settings,
    _parse_bool,
    _parse_int,
    load_settings,
)
from nrforwarder.errors import ConfigurationError


class TestParseHelpers:
    @pytest.mark.parametrize("value", ["true", "True", "TRUE", "1", "yes", " true "])
    def test_truthy_values(self, value):
        assert _parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "", "random"])
    def test_falsy_values(self, value):
        assert _parse_bool(value) is False

    @pytest.mark.parametrize("value", ["abc", "", None, "0", "-5"])
    def test_int_falls_back_to_default(self, value):
        assert _parse_int(value, 3) == 3

    def test_int_parses(self):
        assert _parse_int("7", 3) == 7


class TestSettingsDefaults:
    def test_defaults(self):
        s = Settings()
        assert s.log_endpoint == DEFAULT_LOG_ENDPOINT
        assert s.trace_endpoint == DEFAULT_TRACE_ENDPOINT
        assert s.max_retries == 3
        assert s.retry_interval_ms == 2000
        assert s.environment == "dev"
        assert s.service_name is None
        assert s.forward_tracing is False
        assert s.custom_properties_prefix == "custom"
        assert s.max_payload_size_bytes == 1024000

    def test_frozen(self):
        s = Settings()
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.license_key = "x"


class TestValidate:
    def test_missing_license_key(self):
        with pytest.raises(ConfigurationError, match="license key"):
            Settings(source_service_type="@azure/FunctionApp").validate()

    def test_missing_source_type(self):
        with pytest.raises(ConfigurationError, match="source service type"):
            Settings(license_key="abc").validate()

    def test_valid(self):
        Settings(license_key="abc", source_service_type="@azure/FunctionApp").validate()


class TestLoadSettings:
    def test_env_overrides(self):
        env = {
            "NR_LICENSE_KEY": "key",
            "NR_SOURCE_SERVICE_TYPE": "@azure/DataFactory",
            "NR_MAX_RETRIES": "5",
            "NR_RETRY_INTERVAL": "100",
            "NR_FORWARD_TRACING": "TRUE",
            "NR_TAGS": "env:prod;team:core",
            "NR_DECORATION_PROPERTIES": "hostname, entity.guid",
            "NR_LOG_LEVEL": "debug",
        }
        s = load_settings(environ=env)
        assert s.license_key == "key"
        assert s.source_service_type == "@azure/DataFactory"
        assert s.max_retries == 5
        assert s.retry_interval_ms == 100
        assert s.forward_tracing is True
        assert s.tags == "env:prod;team:core"
        assert s.decoration_properties == ("hostname", "entity.guid")
        assert s.log_level == "DEBUG"

    def test_invalid_int_uses_default(self):
        s = load_settings(environ={"NR_MAX_RETRIES": "lots"})
        assert s.max_retries == 3

    def test_empty_env_uses_defaults(self):
        assert load_settings(environ={}) == Settings()

    def test_yaml_file_then_env(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text(
            "license_key: from-file\n"
            "environment: staging\n"
            "max_payload_size_bytes: 5000\n"
            "decoration_properties: [hostname]\n"
        )
        s = load_settings(str(path), environ={"NR_ENVIRONMENT": "prod"})
        assert s.license_key == "from-file"
        assert s.environment == "prod"
        assert s.max_payload_size_bytes == 5000
        assert s.decoration_properties == ("hostname",)

    def test_config_file_from_env(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("service_name: checkout\n")
        s = load_settings(environ={"NR_CONFIG_FILE": str(path)})
        assert s.service_name == "checkout"

    def test_missing_yaml_ignored(self, tmp_path):
        s = load_settings(str(tmp_path / "nope.yml"), environ={})
        assert s == Settings()

    def test_invalid_yaml_ignored(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("license_key: [unclosed\n")
        s = load_settings(str(path), environ={})
        assert s.license_key == ""
