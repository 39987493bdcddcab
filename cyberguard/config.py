# cyberguard/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True)

    # Application Settings
    APP_NAME: str = "CyberGuard API"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 5001

    # Database Settings
    DATABASE_URL: str = "sqlite:///./cyberguard.db"

    # Security Settings
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    REFRESH_TOKEN_TTL_DAYS: int = 30
    REFRESH_COOKIE_NAME: str = "refresh_token"
    PASSWORD_HASH_ROUNDS: int = 10
    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_RESET_CODE_TTL_MINUTES: int = 15

    # OTP provider ("messagecentral" or "console")
    OTP_PROVIDER: str = "messagecentral"
    OTP_PROVIDER_TIMEOUT_SECONDS: float = 10.0
    CONSOLE_OTP_CODE: str = "123456"

    # MessageCentral VerifyNow Settings
    MESSAGECENTRAL_BASE_URL: str = "https://cpaas.messagecentral.com"
    MESSAGECENTRAL_CUSTOMER_ID: str = ""
    MESSAGECENTRAL_AUTH_TOKEN: str = ""
    MESSAGECENTRAL_COUNTRY_CODE: str = "91"
    MESSAGECENTRAL_FLOW_TYPE: str = "SMS"
    MESSAGECENTRAL_OTP_LENGTH: Optional[str] = None

    # CORS Settings (comma-separated)
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"
    CORS_ALLOW_CREDENTIALS: bool = True

    # Cache
    REDIS_URL: Optional[str] = None
    USERS_CACHE_TTL_SECONDS: int = 60
    ADMIN_USERS_CACHE_TTL_SECONDS: int = 300

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    # Accept comma-separated strings for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def otp_length(self) -> Optional[str]:
        """OTP length forwarded to the provider, only when within 4..8."""
        raw = self.MESSAGECENTRAL_OTP_LENGTH
        if not raw:
            return None
        try:
            parsed = int(raw)
        except ValueError:
            return None
        if parsed < 4 or parsed > 8:
            return None
        return str(parsed)

@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s

settings: Settings = get_settings()
