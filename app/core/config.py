"""
Configuration management for the Contravention Tracker backend
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    DATABASE_URL: str = Field(
        default="sqlite:///./contraventions.db",
        description="Database URL (PostgreSQL in production, SQLite locally)"
    )
    JWT_SECRET_KEY: str = Field(
        default="change-me-local-only",
        description="JWT secret key for token signing"
    )

    # Optional settings with defaults
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_EXPIRE_MINUTES: int = Field(default=120, description="JWT token expiration in minutes")

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    # Fiscal year boundaries are evaluated in this timezone; storage stays UTC
    BUSINESS_TZ: str = Field(default="Asia/Singapore", description="Business timezone for fiscal-year boundaries")

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    # Initial admin bootstrap settings
    INITIAL_ADMIN_EMAIL: str = Field(
        default="admin@company.com",
        description="Email for initial admin user (used when no admin exists)"
    )
    INITIAL_ADMIN_PASSWORD: str = Field(
        default="Admin@12345",
        description="Password for initial admin user (used when no admin exists)"
    )

    # Escalation engine
    ESCALATION_MATRIX: str = Field(
        default="stages",
        description="Built-in escalation matrix: 'stages' (5/10/16+) or 'levels' (1/3/5/8/12+)"
    )
    ESCALATION_MATRIX_FILE: Optional[str] = Field(
        default=None,
        description="Path to a JSON escalation matrix; overrides ESCALATION_MATRIX when set"
    )
    ESCALATION_DUE_DAYS: int = Field(
        default=30,
        description="Days until an escalation is due when the tier does not define its own"
    )

    # Points
    FISCAL_YEAR_START_MONTH: int = Field(default=4, description="Month (1-12) the fiscal year starts on")
    TRAINING_CREDIT: int = Field(default=1, description="Default points credited for a completed course")
    TRAINING_TRIGGER_POINTS: Optional[int] = Field(
        default=10,
        description="Total at which mandatory training is auto-assigned; unset to disable"
    )
    TRAINING_DUE_DAYS: int = Field(default=30, description="Days allowed to complete assigned training")
    POINTS_FLOOR: Optional[int] = Field(
        default=0,
        description="Lowest running total a negative event may produce; unset to disable clamping"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @field_validator("ESCALATION_MATRIX")
    @classmethod
    def validate_escalation_matrix(cls, v: str) -> str:
        """Validate ESCALATION_MATRIX names a built-in matrix"""
        allowed = ["stages", "levels"]
        if v.lower() not in allowed:
            raise ValueError(f"ESCALATION_MATRIX must be one of {allowed}")
        return v.lower()

    @field_validator("FISCAL_YEAR_START_MONTH")
    @classmethod
    def validate_fiscal_month(cls, v: int) -> int:
        if v < 1 or v > 12:
            raise ValueError("FISCAL_YEAR_START_MONTH must be between 1 and 12")
        return v

    @field_validator("TRAINING_CREDIT", "ESCALATION_DUE_DAYS", "TRAINING_DUE_DAYS")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            # JWT_SECRET_KEY must be at least 32 characters in production
            if len(self.JWT_SECRET_KEY) < 32:
                raise ValueError(
                    "JWT_SECRET_KEY must be at least 32 characters in production environment"
                )

            # ALLOWED_ORIGINS must not be wildcard in production
            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
