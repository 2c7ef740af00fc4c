from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    APP_NAME: str = "Institute Dashboard"
    AUTH_MODE: Literal["supabase", "mock"] = "mock"

    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    # Comma separated
    CORS_ORIGINS: str = "http://localhost:5173"

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    CSV_DELIMITER: str = ","
    # What the report date filter does with a record whose date can't be parsed
    REPORT_DATE_POLICY: Literal["fail_open", "fail_closed"] = "fail_open"

    @property
    def cors_origins(self) -> list[str]:
        return [s.strip() for s in self.CORS_ORIGINS.split(",") if s.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
