"""
Tests for configuration validation
"""
import pytest
from pydantic import ValidationError
from app.core.config import Settings


def test_prod_settings_rejects_wildcard_origins():
    """Test that production settings reject wildcard origins"""
    settings = Settings(
        DATABASE_URL="postgresql://test",
        JWT_SECRET_KEY="a" * 32,
        APP_ENV="prod",
        ALLOWED_ORIGINS="*"
    )

    with pytest.raises(ValueError, match="ALLOWED_ORIGINS"):
        settings.validate_production()


def test_prod_settings_rejects_short_jwt_secret():
    """Test that production settings reject short JWT secret"""
    settings = Settings(
        DATABASE_URL="postgresql://test",
        JWT_SECRET_KEY="short",
        APP_ENV="prod",
        ALLOWED_ORIGINS="https://example.com"
    )

    with pytest.raises(ValueError, match="JWT_SECRET_KEY"):
        settings.validate_production()


def test_local_settings_allows_wildcard_origins():
    """Test that local settings allow wildcard origins"""
    settings = Settings(
        DATABASE_URL="postgresql://test",
        JWT_SECRET_KEY="test-key",
        APP_ENV="local",
        ALLOWED_ORIGINS="*"
    )

    settings.validate_production()
    assert settings.get_allowed_origins_list() == ["*"]


def test_get_allowed_origins_list():
    """Test parsing of ALLOWED_ORIGINS"""
    settings = Settings(
        DATABASE_URL="postgresql://test",
        JWT_SECRET_KEY="test-key",
        ALLOWED_ORIGINS="https://example.com, https://app.example.com"
    )
    origins = settings.get_allowed_origins_list()
    assert origins == ["https://example.com", "https://app.example.com"]


def test_escalation_matrix_name_validated():
    assert Settings(ESCALATION_MATRIX="LEVELS").ESCALATION_MATRIX == "levels"

    with pytest.raises(ValidationError):
        Settings(ESCALATION_MATRIX="tiers")


@pytest.mark.parametrize("month", [0, 13])
def test_fiscal_year_start_month_range(month):
    with pytest.raises(ValidationError):
        Settings(FISCAL_YEAR_START_MONTH=month)


def test_negative_training_credit_rejected():
    with pytest.raises(ValidationError):
        Settings(TRAINING_CREDIT=-1)
