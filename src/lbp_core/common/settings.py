"""
Engine configuration loaded from the environment.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from lbp_core.common.math import BASIS_POINTS


logger = logging.getLogger(__name__)

DEFAULT_MIN_SALE_DURATION = 900
DEFAULT_MAX_FEE_BASIS_POINTS = BASIS_POINTS
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SettingsError(Exception):
    """Raised when an environment setting cannot be used."""
    pass


@dataclass(frozen=True)
class EngineSettings:
    """Tunables shared by every pool the engine manages."""
    min_sale_duration: int = DEFAULT_MIN_SALE_DURATION
    max_fee_basis_points: int = DEFAULT_MAX_FEE_BASIS_POINTS
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        if self.min_sale_duration < 0:
            raise SettingsError("min_sale_duration cannot be negative.")
        if not 0 < self.max_fee_basis_points <= BASIS_POINTS:
            raise SettingsError(f"max_fee_basis_points must be in (0, {BASIS_POINTS}].")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise SettingsError(f"Invalid log level: {self.log_level}")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "EngineSettings":
        """
        Builds settings from LBP_MIN_SALE_DURATION, LBP_MAX_FEE_BASIS_POINTS and
        LBP_LOG_LEVEL, after loading a .env file if one is present.
        """
        load_dotenv(dotenv_path)
        return cls(
            min_sale_duration=_get_env_int("LBP_MIN_SALE_DURATION", DEFAULT_MIN_SALE_DURATION),
            max_fee_basis_points=_get_env_int("LBP_MAX_FEE_BASIS_POINTS", DEFAULT_MAX_FEE_BASIS_POINTS),
            log_level=os.getenv("LBP_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )


def _get_env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise SettingsError(f"Environment variable '{key}' must be an integer, got {value!r}")


def configure_logging(settings: EngineSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger.debug("Logging configured at %s", settings.log_level.upper())
