from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./gym_companion.db"
    exercise_db_base_url: str = "https://exercisedb-api-v1-dataset1.p.rapidapi.com/api/v1"
    exercise_db_api_key: str = ""
    exercise_db_api_host: str = "exercisedb-api-v1-dataset1.p.rapidapi.com"
    http_timeout_seconds: float = 30.0  # connect/read/write, per call
    # Catalog sync
    sync_page_size: int = 100
    sync_max_attempts: int = 3  # total attempts per page, including the first
    sync_backoff_seconds: float = 1.0  # doubles after every failed attempt
    sync_backoff_max_seconds: float = 30.0
    periodic_sync_enabled: bool = True
    periodic_sync_interval_days: int = 7
    cors_origins: str = "http://localhost:8081,http://localhost:19006,http://localhost:19000"
    debug: bool = False

    @property
    def rapidapi_headers(self) -> dict[str, str]:
        """RapidAPI auth headers; empty when no key is configured (e.g. self-hosted catalog)."""
        if not self.exercise_db_api_key.strip():
            return {}
        return {
            "X-RapidAPI-Key": self.exercise_db_api_key.strip(),
            "X-RapidAPI-Host": self.exercise_db_api_host,
        }


settings = Settings()
