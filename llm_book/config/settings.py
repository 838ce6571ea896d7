"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("LLM_BOOK_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Runner 相关配置 ----
    default_runner: str = Field(
        default="openai",
        description="默认使用的 Runner 名称",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI 兼容接口的基础URL",
    )
    openai_model: Optional[str] = Field(
        default=None,
        description="覆盖 registry 中的默认模型名",
    )
    openai_temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")
    stream_responses: bool = Field(
        default=True,
        description="未在文档参数中指定 stream 时是否使用流式输出",
    )

    # ---- 文档与存储 ----
    workspace_root: Optional[str] = Field(
        default=None,
        description="翻译产物（.llm 文件）写入的目录；为空时由宿主提供",
    )
    storage_root: str = Field(default=".storage", description="存储根目录")
    secrets_file: Optional[str] = Field(
        default=None,
        description="凭据文件路径，默认位于 storage_root/secrets.json",
    )
    default_language: str = Field(default="English", description="默认目标语言")
    artifact_extension: str = Field(default="llm", description="对话文档扩展名")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("artifact_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        v = v.strip().lstrip(".")
        if not v:
            raise ValueError("artifact_extension must not be empty")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    @property
    def secrets_path(self) -> Path:
        if self.secrets_file:
            return Path(self.secrets_file).expanduser()
        return Path(self.storage_root) / "secrets.json"


settings = Settings()
