import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent
TOOL_NAME = "case-organizer"


class Settings(BaseSettings):
    data_dir: Path = BASE_DIR.parent / "data" / TOOL_NAME
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "CASE_ORGANIZER_",
        "env_file": BASE_DIR / ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
