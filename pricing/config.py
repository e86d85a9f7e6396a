# pricing/config.py
import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    """Настройки из окружения (.env подхватывается автоматически)"""

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None

    SEED_PATH: Path = Path(os.getenv("SEED_PATH", str(BASE_DIR / "data" / "seed.json")))

    # только для форматтера в UI
    CURRENCY_SUFFIX: str = os.getenv("CURRENCY_SUFFIX", " KRW")


def setup_logging() -> None:
    """Консоль всегда, файл если задан LOG_FILE"""
    handlers = [logging.StreamHandler()]
    if Config.LOG_FILE:
        handlers.append(logging.FileHandler(Config.LOG_FILE, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )
