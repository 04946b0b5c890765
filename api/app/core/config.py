from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = Field(default="Standalone Ecommerce", alias="APP_NAME")
    database_url: str = Field(default="sqlite:///./database.sqlite", alias="DATABASE_URL")
    plugin_upload_dir: str = Field(default="uploads/plugins", alias="PLUGIN_UPLOAD_DIR")
    plugin_extract_dir: str = Field(default="uploads/plugins/extracted", alias="PLUGIN_EXTRACT_DIR")
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    cors_origins: str = Field(
        default="http://localhost:5000,http://127.0.0.1:5000",
        alias="CORS_ORIGINS",
    )
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    session_expire_hours: int = Field(default=1, alias="SESSION_EXPIRE_HOURS")
    admin_password: str = Field(default="admin", alias="ADMIN_PASSWORD")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def cors_origins_list(self):
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
