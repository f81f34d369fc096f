# webhook_relay/core/config.py
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import List, Optional
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra='ignore')

    # Application Settings
    APP_NAME: str = "Webhook Relay"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Database Settings
    DATABASE_URL: str = "sqlite:///./webhook_relay.db"
    DATABASE_ECHO: bool = False

    # CORS Settings
    ALLOWED_ORIGINS: str = "*"
    ALLOWED_METHODS: str = "GET,POST,DELETE,OPTIONS"
    ALLOWED_HEADERS: str = "*"

    # Middleware settings
    GZIP_MIN_SIZE: int = 500  # bytes
    MAX_REQUEST_SIZE: int = 1024 * 1024  # 1MB

    # Phone numbers
    DEFAULT_COUNTRY_CODE: str = "91"

    # OTP Settings
    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 5
    OTP_ECHO_IN_RESPONSE: bool = False  # development only, rejected in production
    SESSION_TOKEN_BYTES: int = 32

    # SMS Settings ("twilio" or "log")
    SMS_PROVIDER: str = "log"
    SMS_MESSAGE_TEMPLATE: str = "Your verification code is {code}. It expires in {minutes} minutes."

    # Twilio Settings
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    TWILIO_TIMEOUT_SECONDS: int = 15
    TWILIO_MAX_RETRIES: int = 3

    # Directory service
    DIRECTORY_API_URL: str = ""
    DIRECTORY_API_KEY: Optional[str] = None
    DIRECTORY_PHONE_FIELD: str = "phoneNumber"
    DIRECTORY_TIMEOUT_SECONDS: float = 10.0

    # Push gateway (FCM via a Firebase service account)
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_PRIVATE_KEY: str = ""
    FIREBASE_CLIENT_EMAIL: str = ""
    FIREBASE_APP_NAME: str = "webhook-relay"
    PUSH_ANDROID_CHANNEL_ID: str = "vehicle_alerts"

    # Webhooks
    WEBHOOK_NOTIFY_DEVICES: bool = True
    WEBHOOK_LIST_MAX_LIMIT: int = 100

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("FIREBASE_PRIVATE_KEY")
    @classmethod
    def unescape_private_key(cls, value: str) -> str:
        # env files carry the PEM on one line with literal \n separators
        return value.replace("\\n", "\n")

    @model_validator(mode="after")
    def check_delivery_settings(self) -> "Settings":
        provider = self.SMS_PROVIDER.lower()
        if provider not in ("twilio", "log"):
            raise ValueError(f"Unsupported SMS_PROVIDER '{self.SMS_PROVIDER}' (expected 'twilio' or 'log')")
        if provider == "twilio":
            missing = [
                name for name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"Twilio SMS provider requires {', '.join(missing)}")
        if self.is_production:
            if self.OTP_ECHO_IN_RESPONSE:
                raise ValueError("OTP_ECHO_IN_RESPONSE must not be enabled in production")
            if provider != "twilio":
                raise ValueError("Production deployments must use the twilio SMS provider")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def push_configured(self) -> bool:
        return all((self.FIREBASE_PROJECT_ID, self.FIREBASE_PRIVATE_KEY, self.FIREBASE_CLIENT_EMAIL))

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
    def allowed_methods_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_METHODS)

    @property
    def allowed_headers_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_HEADERS)

@lru_cache()
def get_settings() -> Settings:
    return Settings()
