from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_base_url: str = "http://localhost:8000"
    api_token: Optional[str] = None
    request_timeout: float = 30.0

    script_type: str = "playwright"
    script_lang: str = "python"

    log_level: str = "INFO"
    log_max_lines: Optional[int] = None

    download_dir: Path = Path.home()

    model_config = SettingsConfigDict(
        env_prefix="QA_EXECUTOR_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


settings = Settings()
