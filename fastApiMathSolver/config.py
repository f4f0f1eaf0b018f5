from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

MODEL_GEMINI_2_5_FLASH = "gemini-2.5-flash"


class Settings(BaseSettings):
    """Service configuration, read from the environment once and frozen."""

    model_config = SettingsConfigDict(frozen=True)

    gemini_api_key: str = ""
    gemini_model: str = MODEL_GEMINI_2_5_FLASH
    solver_timeout: float = 60.0

    # Transient upload area, files only live here for one request
    upload_dir: str = "uploads"

    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = ["*"]
