from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    supabase_url: Optional[str] = Field(None)
    supabase_key: Optional[str] = Field(None)
    database_url: Optional[str] = Field(None)

    cloudinary_cloud_name: Optional[str] = Field(None)
    cloudinary_upload_preset: Optional[str] = Field(None)
    cloudinary_api_key: Optional[str] = Field(None)
    cloudinary_api_secret: Optional[str] = Field(None)

    jwt_secret_key: str = Field("change-me-in-production-this-is-not-a-secret")
    session_cookie_name: str = Field("catalog_session")
    bootstrap_admin_username: str = Field("admin")
    bootstrap_admin_password: Optional[str] = Field(None)

    export_prefix: str = Field("putimach")
    log_level: str = Field("INFO")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def store_backend(self) -> str:
        """`postgres` when a direct database URL is configured, `supabase` otherwise."""
        return "postgres" if self.database_url else "supabase"


settings = Settings()
