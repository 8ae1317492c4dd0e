#!filepath: prepstage/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .log_config import LogConfig
from .engine_config import EngineConfig
from .preparator_config import PreparatorConfig


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    prepstage/config/app_config.py → prepstage/config → prepstage → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(__file__), "base.yml")


# env var -> (section, key)
_ENV_OVERRIDES = {
    "PREPSTAGE_BACKEND": ("engine", "backend"),
    "PREPSTAGE_MAX_WORKERS": ("engine", "max_workers"),
    "PREPSTAGE_LOG_LEVEL": ("log", "level"),
}


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    preparator: PreparatorConfig = Field(default_factory=PreparatorConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 prepstage/config/base.yml
        - 不依赖当前工作目录
        - PREPSTAGE_* 环境变量覆盖 YAML
        """
        load_dotenv(os.path.join(project_root(), ".env"))

        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 空 section（如 `engine:`）在 YAML 中是 None，按默认值处理
        raw = {k: v for k, v in raw.items() if v is not None}

        for env_key, (section, key) in _ENV_OVERRIDES.items():
            value = os.getenv(env_key)
            if value:
                section_raw = raw.get(section) or {}
                section_raw[key] = value
                raw[section] = section_raw

        return cls(**raw)
