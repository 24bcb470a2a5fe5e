"""Tests for configuration settings."""

from pashoot_reports.config.settings import Settings, get_settings


def test_settings_loads_from_env():
    """Test that settings loads from environment variables."""
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.anthropic_api_key.get_secret_value() == "sk-ant-test"
    assert settings.source_max_retries == 0


def test_settings_has_defaults():
    """Test that settings has sensible defaults."""
    get_settings.cache_clear()
    settings = get_settings()

    assert settings.source_timeout == 30.0
    assert settings.sync_record_limit == 100
    assert settings.gusto_payroll_limit == 50
    assert settings.stripe_api_url == "https://api.stripe.com"
    assert settings.wave_api_url == "https://gql.waveapps.com"
    assert settings.chat_monthly_limit == 20
    assert settings.contractor_1099_threshold == 600.0


def test_settings_are_cached():
    """Test that get_settings returns cached instance."""
    get_settings.cache_clear()

    settings1 = get_settings()
    settings2 = get_settings()

    assert settings1 is settings2


def test_square_url_follows_environment(monkeypatch):
    """Square sandbox and production use different hosts."""
    monkeypatch.setenv("SQUARE_ENVIRONMENT", "production")
    assert Settings().square_api_url == "https://connect.squareup.com"

    monkeypatch.setenv("SQUARE_ENVIRONMENT", "sandbox")
    assert Settings().square_api_url == "https://connect.squareupsandbox.com"


def test_report_parameters_from_env(monkeypatch):
    """Report parameter defaults can be overridden per deployment."""
    from decimal import Decimal

    from pashoot_reports.reports.types import ReportParameters

    monkeypatch.setenv("DEFAULT_SALES_TAX_RATE", "0.0725")
    monkeypatch.setenv("MONTHLY_BUDGET_INCOME", "12000")

    params = ReportParameters.from_settings(Settings())

    assert params.default_sales_tax_rate == Decimal("0.0725")
    assert params.monthly_budget_income == Decimal("12000.0")
    assert params.monthly_budget_net_income == Decimal("5000.0")
