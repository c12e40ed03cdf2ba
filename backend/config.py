from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "Health Record Tools"
    DATABASE_URL: str = "sqlite:///data/health_records.db"
    DATA_DIR: Path = Path("data")
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:8001",
    ]
    LOG_LEVEL: str = "INFO"
    ENABLE_WEB_SEARCH: bool = True
    SEARCH_EVENTS_DEFAULT_LIMIT: int = 20
    SEARCH_EVENTS_MAX_LIMIT: int = 50
    RECENT_LABS_DEFAULT_LIMIT: int = 5
    RECENT_LABS_MAX_LIMIT: int = 20
    BIOMARKER_TREND_STABLE_PCT: float = 5.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_tool_configuration(self) -> None:
        errors: list[str] = []
        bounds = (
            ("SEARCH_EVENTS", self.SEARCH_EVENTS_DEFAULT_LIMIT, self.SEARCH_EVENTS_MAX_LIMIT),
            ("RECENT_LABS", self.RECENT_LABS_DEFAULT_LIMIT, self.RECENT_LABS_MAX_LIMIT),
        )
        for prefix, default, maximum in bounds:
            if maximum < 1:
                errors.append(f"{prefix}_MAX_LIMIT must be at least 1")
            elif not 1 <= default <= maximum:
                errors.append(f"{prefix}_DEFAULT_LIMIT must be between 1 and {prefix}_MAX_LIMIT")
        if self.BIOMARKER_TREND_STABLE_PCT <= 0:
            errors.append("BIOMARKER_TREND_STABLE_PCT must be positive")
        if errors:
            joined = "; ".join(errors)
            raise RuntimeError(f"Invalid tool configuration: {joined}")


settings = Settings()
settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
