"""Tests for environment-driven settings."""

from conftest import make_settings

from compatibility_api.config import DEFAULT_COLUMNS


class TestSettings:
    def test_defaults(self):
        settings = make_settings()
        assert settings.ebay_marketplace_id == "EBAY_MOTORS_US"
        assert settings.default_category_id == "179679"
        assert settings.fan_out_property == "Year"
        assert settings.columns == DEFAULT_COLUMNS
        assert settings.cors_origins == ["*"]
        assert settings.request_timeout == 15.0

    def test_blank_token_is_not_configured(self):
        assert make_settings(EBAY_AUTH_TOKEN="   ").credential_configured is False
        assert make_settings().credential_configured is True

    def test_comma_separated_lists(self):
        settings = make_settings(
            COMPATIBILITY_COLUMNS="Year, Make ,Model,,Notes",
            ALLOWED_ORIGINS="https://shop.example.com, http://localhost:3000",
        )
        assert settings.columns == ["Year", "Make", "Model", "Notes"]
        assert settings.cors_origins == ["https://shop.example.com", "http://localhost:3000"]

    def test_list_values(self):
        settings = make_settings(COMPATIBILITY_COLUMNS=["Year", "Notes"])
        assert settings.columns == ["Year", "Notes"]

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("EBAY_MARKETPLACE_ID", "EBAY_MOTORS_CA")
        monkeypatch.setenv("EBAY_TIMEOUT_SECONDS", "5")
        settings = make_settings()
        assert settings.ebay_marketplace_id == "EBAY_MOTORS_CA"
        assert settings.request_timeout == 5.0
