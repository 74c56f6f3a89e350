from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    app_version: str = "2026-10-19.v1"
    database_url: str = "sqlite:///./inspectiondesk.db"

    # ---- Logging ----
    log_level: str = "INFO"
    sql_log_level: str = "WARNING"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # Base URL of the web client; used to build links inside emails.
    client_link: str = "http://localhost:3000"

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|jwt
    dev_auto_provision: bool = True
    dev_header_user_email: str = "X-User-Email"
    dev_header_user_role: str = "X-User-Role"

    jwt_secret: str = "dev-change-me"
    jwt_algorithm: str = "HS256"

    # ---- Email ----
    email_backend: str = "console"  # console|sendgrid
    sendgrid_api_key: str | None = None
    email_from_address: str = "no-reply@inspectiondesk.local"
    email_from_name: str = "InspectionDesk"

    # ---- Payments ----
    payment_gateway: str = "ledger"  # ledger|paystack
    paystack_secret_key: str | None = None
    paystack_base_url: str = "https://api.paystack.co"

    # ---- Pagination ----
    page_size_default: int = 20
    page_size_max: int = 100

    # ---- Celery ----
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    reconcile_interval_seconds: int = 60 * 60

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")

            if (self.email_backend or "").strip().lower() == "sendgrid" and not self.sendgrid_api_key:
                raise ValueError("email_backend=sendgrid requires sendgrid_api_key")


settings = Settings()
