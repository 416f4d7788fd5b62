from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")
    auto_create_tables: bool = Field(True, alias="AUTO_CREATE_TABLES")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    remember_me_access_token_expire_minutes: int = Field(120, alias="REMEMBER_ME_ACCESS_TOKEN_EXPIRE_MINUTES")
    refresh_token_expire_days: int = Field(1, alias="REFRESH_TOKEN_EXPIRE_DAYS")

    upload_dir: str = Field("storage", alias="UPLOAD_DIR")
    storage_url_prefix: str = Field("/storage", alias="STORAGE_URL_PREFIX")
    max_upload_size_mb: int = Field(10, alias="MAX_UPLOAD_SIZE_MB")

    class_code_length: int = Field(6, alias="CLASS_CODE_LENGTH")
    class_code_fallback_length: int = Field(8, alias="CLASS_CODE_FALLBACK_LENGTH")
    class_code_max_attempts: int = Field(10, alias="CLASS_CODE_MAX_ATTEMPTS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
