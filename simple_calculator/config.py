"""Settings and logging setup for the calculator program.

Settings come from (lowest to highest priority) defaults, a ``.env`` file,
``CALC_*`` environment variables and command-line flags.
"""

import logging
import os
from typing import Any, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_PRECISION = 6
MIN_PRECISION = 0
MAX_PRECISION = 20
DEFAULT_HISTORY_FILE = os.path.expanduser("~/.simple_calculator_history")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# environment variable -> Settings field
ENV_VARS = {
    "CALC_PRECISION": "precision",
    "CALC_HISTORY_FILE": "history_file",
    "CALC_LOG_LEVEL": "log_level",
    "CALC_BANNER": "show_banner",
}


class Settings(BaseModel):
    """Options of one calculator program run."""
    precision: int = Field(DEFAULT_PRECISION, ge=MIN_PRECISION, le=MAX_PRECISION,
                           description="Digits shown after the decimal point")
    history_file: str = Field(DEFAULT_HISTORY_FILE, description="Prompt history file, empty to disable")
    log_level: str = "WARNING"
    show_banner: bool = True

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @field_validator('history_file')
    @classmethod
    def strip_history_file(cls, v: str) -> str:
        return os.path.expanduser(v.strip()) if v.strip() else ''


def load_settings(env_file: Optional[str] = None, **overrides: Any) -> Settings:
    """Build Settings from the environment; ``overrides`` that are not None win.

    Raises pydantic.ValidationError for out-of-range or malformed values.
    """
    load_dotenv(env_file if env_file is not None else find_dotenv(usecwd=True))
    values = {}
    for var, field in ENV_VARS.items():
        raw = os.getenv(var)
        if raw is not None:
            values[field] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING), format=LOG_FORMAT)
