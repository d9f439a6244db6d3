"""Runtime configuration, read from the environment (and a .env file if present)."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


STEP_LIMIT = int(os.environ.get("BF_STEP_LIMIT", "1000000"))
POINTER_POLICY = os.environ.get("BF_POINTER_POLICY", "error").strip().lower()
USE_JUMP_TABLE = _env_flag("BF_JUMP_TABLE")
LOG_LEVEL = os.environ.get("BF_LOG_LEVEL", "WARNING").upper()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.WARNING),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
