import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv(".env", override=True)


@dataclass(frozen=True)
class Settings:
    # Spreadsheet
    SPREADSHEET_PATH: str   = os.getenv("SPREADSHEET_PATH", "")
    REFRESH_INTERVAL: float = float(os.getenv("REFRESH_INTERVAL", "30"))   # seconds
    NOTIFY_URL: str         = os.getenv("NOTIFY_URL", "http://localhost:8000/notify_update")

    # LLM
    LLM_PROVIDER: str    = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL: str       = os.getenv("LLM_MODEL", "gpt-4o")
    LLM_API_KEY: str     = os.getenv("LLM_API_KEY", "")

    LOG_LEVEL: str       = os.getenv("LOG_LEVEL", "INFO")
