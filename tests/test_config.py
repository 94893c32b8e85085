import pytest
from config import Settings
from pydantic import ValidationError


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("INGEST_CACHE_MAX_ENTRIES", raising=False)
        config = Settings(_env_file=None).endpoint_config()
        assert config.endpoint == "http://localhost:8083/management"
        assert (config.username, config.password) == ("admin", "admin")
        assert config.cache_max_entries == 1000
        assert config.cache_ttl_seconds == 3600
        assert config.negative_cache_ttl_seconds is None
        assert config.verify_tls is False
        assert config.headers == ()

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("INGEST_MANAGEMENT_ENDPOINT", "https://apim.internal/management")
        monkeypatch.setenv("INGEST_MANAGEMENT_HEADERS", '["X-Tenant: acme"]')
        monkeypatch.setenv("INGEST_CACHE_TTL_SECONDS", "0")
        monkeypatch.setenv("INGEST_APPLICATION_FIELD", "app")

        settings = Settings(_env_file=None)
        config = settings.endpoint_config()

        assert config.endpoint == "https://apim.internal/management"
        assert config.headers == ("X-Tenant: acme",)
        assert config.cache_ttl_seconds == 0
        assert settings.application_field == "app"

    def test_negative_cache_size_is_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, cache_max_entries=-1).endpoint_config()

    def test_endpoint_config_is_immutable(self):
        config = Settings(_env_file=None).endpoint_config()
        with pytest.raises(ValidationError):
            config.cache_ttl_seconds = 1
