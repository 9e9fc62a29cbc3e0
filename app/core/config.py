# app/core/config.py

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "SocialNet"
    ENVIRONMENT: str = "development"  # development | production
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./socialnet.db"

    # JWT / session
    SECRET_KEY: str = "CHANGE_THIS_TO_A_SUPER_SECRET_KEY"
    SESSION_SECRET_KEY: str = "CHANGE_THIS_SESSION_SECRET"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REMEMBER_ME_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12

    # Email verification / recovery codes
    OTP_EXPIRE_MINUTES: int = 60
    OTP_MAX_ATTEMPTS: int = 5
    SITE_URL: str = "http://localhost:8000"
    MAIL_SENDER: str = "no-reply@socialnet.local"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_STARTTLS: bool = True

    # Rate limiting (slowapi format) and auth form lockout
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT: str = "100/minute"
    AUTH_RATE_LIMIT: str = "10/minute"
    LOCKOUT_MAX_ATTEMPTS: int = 5
    LOCKOUT_SECONDS: int = 300

    CORS_ORIGINS: str = "http://localhost:8000,http://127.0.0.1:8000"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
