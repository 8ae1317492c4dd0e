#!filepath: prepstage/__init__.py

from .utils.logger import Logging, logs, init_logging
from .utils.errors import (
    UserInputError,
    PreparatorError,
    HydrationError,
    StageExecutionError,
    PreparedDataTooLargeError,
)
from .config.app_config import AppConfig

__all__ = [
    "logs", "Logging", "init_logging",
    "AppConfig",
    "UserInputError",
    "PreparatorError",
    "HydrationError",
    "StageExecutionError",
    "PreparedDataTooLargeError",
]
