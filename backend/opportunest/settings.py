from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias="NODE_ENV")
    port: int = Field(default=5000, validation_alias="PORT")

    # CORS / Frontend
    frontend_urls: str | None = Field(default=None, validation_alias="FRONTEND_URLS")

    # MongoDB
    mongo_uri: str | None = Field(default=None, validation_alias="MONGO_URI")
    mongo_db_name: str = Field(default="scholarshipDB", validation_alias="MONGO_DB_NAME")
    mongo_timeout_ms: int = Field(default=5000, validation_alias="MONGO_TIMEOUT_MS")

    # Auth (Firebase ID tokens)
    firebase_project_id: str | None = Field(
        default=None, validation_alias="FIREBASE_PROJECT_ID"
    )

    # Static role allowlist, applied once when a user is first seen.
    admin_email: str | None = Field(default=None, validation_alias="ADMIN_EMAIL")
    moderator_email: str | None = Field(default=None, validation_alias="MODERATOR_EMAIL")

    # Image hosting (ImgBB)
    imgbb_api_key: str | None = Field(default=None, validation_alias="IMGBB_API_KEY")
    imgbb_upload_url: str = Field(
        default="https://api.imgbb.com/1/upload", validation_alias="IMGBB_UPLOAD_URL"
    )
    image_upload_timeout_seconds: float = Field(
        default=30.0, validation_alias="IMAGE_UPLOAD_TIMEOUT_SECONDS"
    )

    # ---- helpers / derived flags ----
    @property
    def normalized_environment(self) -> str:
        v = (self.environment or "").strip().lower()
        if v in ("prod", "production"):
            return "production"
        if v in ("stage", "staging"):
            return "staging"
        if v in ("dev", "development"):
            return "development"
        return v or "development"

    @property
    def is_production(self) -> bool:
        return self.normalized_environment == "production"

    @property
    def is_development(self) -> bool:
        return self.normalized_environment == "development"

    def require_in_production(self) -> None:
        """
        Enforce required settings in production.

        Development/staging may run with partial config for local work,
        but production must be fully configured.
        """
        if not self.is_production:
            return

        missing: list[str] = []

        if not self.mongo_uri:
            missing.append("MONGO_URI")
        if not self.firebase_project_id:
            missing.append("FIREBASE_PROJECT_ID")
        if not self.imgbb_api_key:
            missing.append("IMGBB_API_KEY")

        if missing:
            raise RuntimeError(
                "Missing required production environment variables: "
                + ", ".join(missing)
            )

    def to_log_safe_dict(self) -> dict[str, object]:
        """
        A redacted representation safe for structured logs / diagnostics.
        """
        def _has(v: object) -> bool:
            return v is not None and str(v).strip() != ""

        return {
            "environment": self.normalized_environment,
            "port": self.port,
            "frontend_urls": self.frontend_urls,
            "mongo": {
                "mongo_uri_configured": _has(self.mongo_uri),
                "mongo_db_name": self.mongo_db_name,
                "mongo_timeout_ms": self.mongo_timeout_ms,
            },
            "auth": {
                "firebase_project_id": self.firebase_project_id,
                "admin_email_configured": _has(self.admin_email),
                "moderator_email_configured": _has(self.moderator_email),
            },
            "integrations": {
                "imgbb_api_key_configured": _has(self.imgbb_api_key),
                "image_upload_timeout_seconds": self.image_upload_timeout_seconds,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings()
    s.require_in_production()
    return s


settings = get_settings()
