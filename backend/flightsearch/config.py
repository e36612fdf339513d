from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # App Settings
    app_name: str = "Flight Search"
    env: str = "development"
    log_level: str = "INFO"

    # Database (embedded SQLite file holding the airport catalog and favorites)
    database_url: str = "sqlite:///./flight_search.db"

    # Preference store: single JSON document with the last search query
    preferences_path: str = "flight_search_preferences.json"

    # Overrides the bundled catalog_loader/data/airports.csv
    airports_csv_path: Optional[str] = None

    # Search
    search_debounce_ms: int = 300

    # CORS
    cors_origins: str = ""  # Comma-separated production origins

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
