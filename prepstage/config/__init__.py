# prepstage/config/__init__.py
from .app_config import AppConfig
from .log_config import LogConfig
from .engine_config import EngineConfig
from .preparator_config import PreparatorConfig

__all__ = ["AppConfig", "LogConfig", "EngineConfig", "PreparatorConfig"]
