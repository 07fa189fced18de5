import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
DOTENV_PATH = (Path(__file__).resolve().parent.parent.parent / ".env")
load_dotenv(dotenv_path=DOTENV_PATH, override=False)

_TRUTHY = {"1", "true", "True", "YES", "yes"}


class Settings:
    # Workflow collaborator (Superglue)
    SUPERGLUE_API_KEY: str = os.getenv("SUPERGLUE_API_KEY", "").strip()
    SUPERGLUE_ENDPOINT: str = os.getenv("SUPERGLUE_ENDPOINT", "https://graphql.superglue.ai").strip().rstrip("/")
    SUPERGLUE_INTEGRATION_IDS: list[str] = [
        i.strip() for i in os.getenv("SUPERGLUE_INTEGRATION_IDS", "supabase_postgres-1").split(",") if i.strip()
    ]
    SUPERGLUE_TIMEOUT: float = float(os.getenv("SUPERGLUE_TIMEOUT", "120"))

    # Text generation (OpenAI compatible chat completions)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").strip().rstrip("/")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()

    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./analytics_dashboard.db").strip()
    # Optional read-only analytics database for /execute-query
    ANALYTICS_DB_URL: str = os.getenv("ANALYTICS_DB_URL", "").strip()

    # Security Configuration
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "").strip()
    MAGIC_LINK_TTL_MINUTES: int = int(os.getenv("MAGIC_LINK_TTL_MINUTES", "15"))
    APP_BASE_URL: str = os.getenv("APP_BASE_URL", "http://localhost:8000").strip().rstrip("/")

    # Superadmin Configuration (optional seed)
    SUPERADMIN_EMAIL: str = os.getenv("SUPERADMIN_EMAIL", "").strip()
    SUPERADMIN_MERCHANT_ID: str = os.getenv("SUPERADMIN_MERCHANT_ID", "").strip()

    # Behaviour switches
    SIMULATED_FAILURE_RATE: float = float(os.getenv("SIMULATED_FAILURE_RATE", "0.05"))
    UNKNOWN_EVENT_STATUS: str = os.getenv("UNKNOWN_EVENT_STATUS", "success").strip()
    SOLUTION_STATIC_FALLBACK: bool = os.getenv("SOLUTION_STATIC_FALLBACK", "0").strip() in _TRUTHY

    # Client SDK
    HISTORY_SYNC_INTERVAL: float = float(os.getenv("HISTORY_SYNC_INTERVAL", "5"))
    HISTORY_STORAGE_PATH: str = os.getenv(
        "HISTORY_STORAGE_PATH",
        str(Path.home() / ".analytics-dashboard" / "storage.json")
    ).strip()

    # App Configuration
    APP_TITLE: str = "Merchant Analytics Dashboard API"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    def validate(self):
        if self.UNKNOWN_EVENT_STATUS not in ("success", "unknown"):
            raise RuntimeError(
                "UNKNOWN_EVENT_STATUS must be 'success' or 'unknown', "
                f"got '{self.UNKNOWN_EVENT_STATUS}'"
            )
        if not 0.0 <= self.SIMULATED_FAILURE_RATE <= 1.0:
            raise RuntimeError("SIMULATED_FAILURE_RATE must be between 0 and 1")


settings = Settings()
settings.validate()
