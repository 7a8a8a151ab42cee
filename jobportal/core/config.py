from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    APP_NAME: str = "JobPortal"
    APP_ENV: str = "dev"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = "change_me_please"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    # When true, sign-up returns no session until the email is confirmed
    REQUIRE_EMAIL_CONFIRMATION: bool = False

    # SQLite connection string (read from .env)
    DATABASE_URL: str = "sqlite:///./jobportal.db?check_same_thread=false"

    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"

    # Object storage: one sub-directory per bucket
    STORAGE_ROOT: str = "./storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Client-side composite view cache
    PROFILE_CACHE_TTL_SECONDS: int = 300
    CACHE_FILE: str = "./.jobportal_cache.json"

settings = Settings()
