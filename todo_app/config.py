"""
Configuration loaded from the environment (and a .env file, if present).
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


def env_bool(key: str, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    value = os.environ.get(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


class Config:
    HOST = os.environ.get("HOST", "127.0.0.1")
    PORT = int(os.environ.get("PORT", "8000"))
    DEBUG = env_bool("DEBUG", False)
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Must be the public (tunnel) URL when the widget runs inside ChatGPT.
    BASE_URL = os.environ.get("BASE_URL") or None
    CONNECT_DOMAIN = os.environ.get("CONNECT_DOMAIN") or None

    WIDGET_ASSETS_DIR = os.environ.get(
        "WIDGET_ASSETS_DIR", str(PROJECT_ROOT / "dist" / "widgets")
    )
    SEED_SAMPLE_TODOS = env_bool("SEED_SAMPLE_TODOS", True)


def configure_logging(level: str = Config.LOG_LEVEL) -> None:
    # stderr keeps stdout free for the stdio MCP transport
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    logging.basicConfig(
        stream=sys.stderr,
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
