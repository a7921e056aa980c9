from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = Field(default="sqlite+pysqlite:///./dev.db", validation_alias="DATABASE_URL")
    db_auto_create: bool = Field(default=True, validation_alias="DB_AUTO_CREATE")

    # "database" persists through SQLAlchemy; "memory" serves a seeded in-process world.
    storage_backend: str = Field(default="database", validation_alias="STORAGE_BACKEND")
    memory_seed_demo: bool = Field(default=True, validation_alias="MEMORY_SEED_DEMO")
    demo_owner_id: str = Field(default="demo-user", validation_alias="DEMO_OWNER_ID")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    auth_provider: str = Field(default="supabase", validation_alias="AUTH_PROVIDER")
    auth_provider_url: str | None = Field(default=None, validation_alias="AUTH_PROVIDER_URL")
    auth_provider_api_key: str | None = Field(default=None, validation_alias="AUTH_PROVIDER_API_KEY")
    auth_static_tokens: dict[str, str] = Field(default_factory=dict, validation_alias="AUTH_STATIC_TOKENS")
    auth_timeout_seconds: float = Field(default=10.0, validation_alias="AUTH_TIMEOUT_SECONDS")

    media_backend: str = Field(default="local", validation_alias="MEDIA_BACKEND")
    media_root: str = Field(default="./storage/media", validation_alias="MEDIA_ROOT")
    media_url_prefix: str = Field(default="/media", validation_alias="MEDIA_URL_PREFIX")
    object_storage_url: str | None = Field(default=None, validation_alias="OBJECT_STORAGE_URL")
    object_storage_api_key: str | None = Field(default=None, validation_alias="OBJECT_STORAGE_API_KEY")
    object_storage_bucket: str = Field(default="images", validation_alias="OBJECT_STORAGE_BUCKET")
    object_storage_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="OBJECT_STORAGE_TIMEOUT_SECONDS",
    )
    upload_max_bytes: int = Field(default=5 * 1024 * 1024, validation_alias="UPLOAD_MAX_BYTES")

    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        validation_alias="CORS_ORIGINS",
    )


settings = Settings()
