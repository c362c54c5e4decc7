"""
Konfigurasi aplikasi menggunakan Pydantic Settings.
Semua konfigurasi dimuat dari environment variables atau file .env.
"""

from dataclasses import dataclass
from typing import Optional, List, Union
from datetime import timedelta
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Konfigurasi aplikasi utama."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Settings
    APP_NAME: str = Field(default="WellAuth Security Core", description="Nama aplikasi")
    APP_VERSION: str = Field(default="1.0.0", description="Versi aplikasi")
    DEBUG: bool = Field(default=False, description="Mode debug")
    ENVIRONMENT: str = Field(default="development", description="Environment aplikasi")
    API_V1_STR: str = Field(default="/api/v1", description="Prefix untuk API v1")

    # Security Settings
    SECRET_KEY: str = Field(..., description="Secret key aplikasi")
    JWT_SECRET_KEY: Optional[str] = Field(None, description="Secret key untuk verifikasi bearer JWT dari identity provider")
    ALGORITHM: str = Field(default="HS256", description="Algoritma JWT")
    JWT_AUDIENCE: Optional[str] = Field(None, description="Audience claim yang diharapkan pada bearer JWT")

    # Account Security Policy
    MAX_LOGIN_ATTEMPTS: int = Field(default=5, description="Jumlah gagal login sebelum akun dikunci")
    LOGIN_FAILURE_WINDOW_MINUTES: int = Field(default=10, description="Window penghitungan gagal login dalam menit")
    ACCOUNT_LOCKOUT_MINUTES: int = Field(default=30, description="Durasi lockout akun dalam menit")
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = Field(default=60, description="Masa berlaku token reset password dalam menit")
    DEVICE_TRUST_THRESHOLD: int = Field(default=3, description="Jumlah login sebelum device dianggap trusted")
    SESSION_EXPIRE_HOURS: int = Field(default=24, description="Masa berlaku session dalam jam")
    PASSWORD_MIN_LENGTH: int = Field(default=8, description="Panjang minimal password")
    PASSWORD_MAX_LENGTH: int = Field(default=100, description="Panjang maksimal password")

    # Database
    DATABASE_URL: str = Field(..., description="SQLAlchemy async database URL")
    DB_POOL_SIZE: int = Field(default=20, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=0, description="Database max overflow connections")
    DB_POOL_PRE_PING: bool = Field(default=True, description="Pre-ping database connections")
    DB_CREATE_TABLES: bool = Field(default=False, description="Buat tabel saat startup")

    # Rate Limiting
    RATE_LIMIT_BACKEND: str = Field(default="memory", description="Backend counting store: memory atau redis")
    REDIS_URL: Optional[str] = Field(None, description="Redis connection URL untuk shared counting store")
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS: int = Field(default=60, description="Interval sweep entry rate limit yang expired")

    # Email Settings
    EMAIL_ENABLED: bool = Field(default=True, description="Aktifkan pengiriman email")
    SMTP_HOST: str = Field(default="localhost", description="SMTP server host")
    SMTP_PORT: int = Field(default=587, description="SMTP server port")
    SMTP_USER: Optional[str] = Field(None, description="SMTP username")
    SMTP_PASSWORD: Optional[str] = Field(None, description="SMTP password")
    SMTP_TLS: bool = Field(default=True, description="Enable SMTP TLS")
    SMTP_SSL: bool = Field(default=False, description="Enable SMTP SSL")
    SMTP_TIMEOUT_SECONDS: int = Field(default=10, description="SMTP connection timeout")
    EMAIL_FROM_NAME: str = Field(default="WellAuth", description="Email sender name")
    EMAIL_FROM_ADDRESS: str = Field(default="noreply@example.com", description="Email sender address")

    # CORS Settings
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_FORMAT: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )

    # Frontend URL
    FRONTEND_URL: str = Field(
        default="http://localhost:3000",
        description="Frontend URL untuk email links"
    )

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        """Parse CORS origins dari string atau list."""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("DATABASE_URL", mode='before')
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v:
            raise ValueError("DATABASE_URL must be set")
        return v

    @field_validator("RATE_LIMIT_BACKEND")
    def validate_rate_limit_backend(cls, v: str) -> str:
        """Validate rate limit backend."""
        v = v.lower()
        if v not in ("memory", "redis"):
            raise ValueError("RATE_LIMIT_BACKEND must be 'memory' or 'redis'")
        return v

    @property
    def is_development(self) -> bool:
        """True jika berjalan di environment development."""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def jwt_secret(self) -> str:
        """Secret untuk verifikasi JWT, fallback ke SECRET_KEY."""
        return self.JWT_SECRET_KEY or self.SECRET_KEY

    @property
    def password_reset_url(self) -> str:
        """Base URL halaman reset password di frontend."""
        return f"{self.FRONTEND_URL.rstrip('/')}/reset-password"

    @property
    def security_policy(self) -> "SecurityPolicy":
        """Policy keamanan akun yang diturunkan dari settings."""
        return SecurityPolicy.from_settings(self)


@dataclass(frozen=True)
class SecurityPolicy:
    """
    Parameter kebijakan keamanan akun.

    Di-pass eksplisit ke setiap service saat konstruksi sehingga
    threshold dan durasi bisa di-override per instance (mis. di test).
    """
    max_failed_attempts: int = 5
    failure_window: timedelta = timedelta(minutes=10)
    lockout_duration: timedelta = timedelta(minutes=30)
    reset_token_ttl: timedelta = timedelta(minutes=60)
    device_trust_threshold: int = 3
    session_ttl: timedelta = timedelta(hours=24)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecurityPolicy":
        return cls(
            max_failed_attempts=settings.MAX_LOGIN_ATTEMPTS,
            failure_window=timedelta(minutes=settings.LOGIN_FAILURE_WINDOW_MINUTES),
            lockout_duration=timedelta(minutes=settings.ACCOUNT_LOCKOUT_MINUTES),
            reset_token_ttl=timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
            device_trust_threshold=settings.DEVICE_TRUST_THRESHOLD,
            session_ttl=timedelta(hours=settings.SESSION_EXPIRE_HOURS),
        )

    @property
    def failure_window_minutes(self) -> int:
        return int(self.failure_window.total_seconds() // 60)


@lru_cache()
def get_settings() -> Settings:
    """
    Mendapatkan cached settings instance.
    Menggunakan lru_cache untuk memastikan settings hanya di-load sekali.
    """
    return Settings()


def get_security_policy() -> SecurityPolicy:
    """Policy keamanan default dari global settings."""
    return get_settings().security_policy


# Global settings instance
settings = get_settings()
