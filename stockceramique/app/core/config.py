from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env à la racine du dépôt (optionnel)
ENV_PATH = Path(__file__).resolve().parents[3] / ".env"

load_dotenv(ENV_PATH)


class Settings(BaseSettings):
    APP_NAME: str = "StockCéramique"

    # Par défaut : base SQLite locale (mode poste de travail)
    DATABASE_URL: str = "sqlite:///./data/stockceramique.db"
    DB_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    # Seuil "stock bas" quand l'article n'en définit pas
    DEFAULT_SEUIL_MINIMUM: int = 10
    RECENT_MOVEMENTS_LIMIT: int = 10

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    model_config = SettingsConfigDict(env_file=str(ENV_PATH), extra="ignore")


def normalize_database_url(url: str) -> str:
    """
    postgres:// et postgresql:// -> driver psycopg 3.
    Les autres URLs sont renvoyées telles quelles.
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


settings = Settings()
