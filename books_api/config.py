import os

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .secrets import fetch_vault_secret

load_dotenv(".env")


def _default_mongodb_url() -> str:
    env_url = os.getenv("APP_MONGODB_URL") or os.getenv("MONGODB_URL")
    if env_url:
        return env_url

    user = os.getenv("MONGO_USER")
    password = os.getenv("MONGO_PASSWORD")
    host = os.getenv("MONGO_HOST", "localhost")
    port = os.getenv("MONGO_PORT", "27017")
    if user and password:
        return f"mongodb://{user}:{password}@{host}:{port}"
    return f"mongodb://{host}:{port}"


class Settings(BaseSettings):
    app_name: str = "Books API"
    version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8000
    mongodb_url: str = Field(default_factory=_default_mongodb_url)
    mongodb_database: str = "books"
    books_collection: str = "books"
    mongodb_timeout_ms: int = 5000
    cors_origins: str = ""
    rate_limit_requests: int = 1000
    rate_limit_window_seconds: int = 60
    otel_enabled: bool = True
    require_https: bool = False
    strict_security: bool = False
    vault_addr: str | None = None
    vault_token: str | None = None
    vault_kv_mount: str = "kv"
    vault_secret_path: str = "books-api/config"

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    settings = Settings()
    if settings.vault_addr and settings.vault_token:
        secret = fetch_vault_secret(
            addr=settings.vault_addr,
            token=settings.vault_token,
            mount=settings.vault_kv_mount,
            path=settings.vault_secret_path,
        )
        if secret.get("mongodb_url"):
            settings.mongodb_url = secret["mongodb_url"]
    if settings.strict_security:
        insecure_markers = ("admin:admin@", "root:root@", "changeme", "change-me", "replace-me", "root:example@")
        if any(marker in settings.mongodb_url for marker in insecure_markers):
            raise RuntimeError("Insecure MongoDB credentials detected")
        if "@" not in settings.mongodb_url.split("://", 1)[-1]:
            raise RuntimeError("MongoDB url has no credentials")
        if settings.vault_token and settings.vault_token.lower() == "root":
            raise RuntimeError("Insecure Vault token detected")
    return settings
