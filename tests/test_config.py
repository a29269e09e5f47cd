"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from kms_credentials.config import Settings, gce_metadata_base_url, get_settings, normalize_host


class TestSettings:

    def test_defaults(self):
        settings = Settings()

        assert settings.http_timeout == 10.0
        assert settings.azure_imds_url == "http://169.254.169.254/metadata/identity/oauth2/token"
        assert settings.azure_api_version == "2018-02-01"
        assert settings.azure_resource == "https://vault.azure.net"
        assert settings.azure_refresh_margin_ms == 60_000
        assert settings.gce_metadata_base_url == "http://169.254.169.254"
        assert settings.aws_enabled is True
        assert settings.gcp_enabled is True

    def test_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("KMS_CREDENTIALS_HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("KMS_CREDENTIALS_AZURE_REFRESH_MARGIN_MS", "0")
        monkeypatch.setenv("KMS_CREDENTIALS_AWS_ENABLED", "false")

        settings = Settings()

        assert settings.http_timeout == 2.5
        assert settings.azure_refresh_margin_ms == 0
        assert settings.aws_enabled is False

    @pytest.mark.parametrize("variable", ["GCE_METADATA_HOST", "GCE_METADATA_IP"])
    def test_metadata_host_variables(self, monkeypatch, variable):
        monkeypatch.setenv(variable, "http://127.0.0.1:5001")

        assert Settings().gce_metadata_base_url == "http://127.0.0.1:5001"

    @pytest.mark.parametrize("host,expected", [
        ("metadata.google.internal", "http://metadata.google.internal"),
        ("127.0.0.1:5001/", "http://127.0.0.1:5001"),
        ("https://metadata.example", "https://metadata.example"),
    ])
    def test_metadata_base_url_normalized(self, monkeypatch, host, expected):
        monkeypatch.setenv("GCE_METADATA_HOST", host)

        assert Settings().gce_metadata_base_url == expected

    def test_rejects_non_positive_timeout(self, monkeypatch):
        monkeypatch.setenv("KMS_CREDENTIALS_HTTP_TIMEOUT", "0")

        with pytest.raises(ValidationError):
            Settings()

    def test_rejects_negative_margin(self, monkeypatch):
        monkeypatch.setenv("KMS_CREDENTIALS_AZURE_REFRESH_MARGIN_MS", "-1")

        with pytest.raises(ValidationError):
            Settings()

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("KMS_CREDENTIALS_LOG_LEVEL", "debug")

        assert Settings().log_level == "DEBUG"

    def test_rejects_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("KMS_CREDENTIALS_LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError):
            Settings()

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestMetadataHost:

    def test_environment_read_after_settings_cached(self, monkeypatch):
        assert gce_metadata_base_url() == "http://169.254.169.254"

        monkeypatch.setenv("GCE_METADATA_HOST", "127.0.0.1:5001")

        assert gce_metadata_base_url() == "http://127.0.0.1:5001"

    def test_host_wins_over_ip(self, monkeypatch):
        monkeypatch.setenv("GCE_METADATA_IP", "10.0.0.2")
        monkeypatch.setenv("GCE_METADATA_HOST", "metadata.google.internal")

        assert gce_metadata_base_url() == "http://metadata.google.internal"

    @pytest.mark.parametrize("host,expected", [
        ("10.0.0.1:8080/", "http://10.0.0.1:8080"),
        (" https://metadata.example ", "https://metadata.example"),
    ])
    def test_normalize_host(self, host, expected):
        assert normalize_host(host) == expected
