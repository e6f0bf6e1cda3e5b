"""CRM configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class CRMSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///crm.db"
    echo_sql: bool = False
    app_title: str = "Service CRM"
    log_level: str = "INFO"
    log_json: bool = False

    # Access tokens (Bearer header or sb-<ref>-auth-token cookie)
    auth_secret: str = ""
    auth_token_ttl_seconds: int = 3600

    # Key for API keys stored at rest (falls back to auth_secret)
    encryption_key: str = ""

    site_url: str = "http://localhost:3000"

    # Stripe (optional - payments)
    stripe_secret_key: str | None = None
    stripe_currency: str = "usd"

    # Twilio (optional - SMS)
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_from_number: str | None = None

    # SendGrid (optional - Email)
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str | None = None
    sendgrid_from_name: str | None = None

    # OpenAI (optional - triage + assistant)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"

    # Google OAuth (optional - Calendar, Sheets, Drive, Contacts)
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_redirect_uri: str | None = None

    # Outbound webhooks
    webhook_processor_secret: str = ""
    webhook_batch_size: int = 50
    webhook_max_retries: int = 5
    webhook_timeout_seconds: float = 10.0

    # Inventory sync
    inventory_timeout_seconds: float = 30.0

    # File storage (buckets live under storage_dir/<bucket>/)
    storage_dir: str = "data/storage"
    storage_public_url: str = "http://localhost:8020/storage"

    model_config = {"env_prefix": "CRM_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def project_dir(self) -> Path:
        return self.base_dir.parent

    @property
    def storage_root(self) -> Path:
        path = Path(self.storage_dir)
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    @property
    def calendar_redirect_uri(self) -> str:
        return self.google_redirect_uri or f"{self.site_url}/api/calendar/google/callback"

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key)

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_number)

    @property
    def sendgrid_configured(self) -> bool:
        return bool(self.sendgrid_api_key and self.sendgrid_from_email)

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def google_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = CRMSettings()
