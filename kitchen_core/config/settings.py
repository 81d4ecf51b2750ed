"""Kitchen Core 配置。

来源优先级：显式参数 > 环境变量 > .env > kitchen.yaml > secrets 目录。
YAML 文件既可以直接写字段，也可以把字段放在顶层 `kitchen:` 段下。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


CONFIG_FILENAMES = ("kitchen.yaml", "config.yaml")


def _config_candidates() -> List[Path]:
    explicit = os.getenv("KITCHEN_CONFIG_FILE")
    if explicit:
        return [Path(explicit).expanduser()]
    roots = [Path.cwd(), Path(__file__).resolve().parents[2]]
    return [root / name for root in dict.fromkeys(roots) for name in CONFIG_FILENAMES]


def _load_kitchen_yaml() -> Dict[str, Any]:
    """读取第一个存在的 YAML 配置文件；文件不可读时给出警告并忽略。"""

    for path in _config_candidates():
        if not path.is_file():
            continue
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Ignoring unreadable kitchen config {path}: {exc}")
            continue
        if isinstance(raw, dict) and isinstance(raw.get("kitchen"), dict):
            return raw["kitchen"]
        if isinstance(raw, dict):
            return raw
        warnings.warn(f"Ignoring kitchen config {path}: top level must be a mapping")
    return {}


class KitchenSettings(BaseSettings):
    """Kitchen Core 运行配置。

    字段名即环境变量名（不区分大小写），例如 GEMINI_API_KEY、CHAT_QUOTA_MAX。
    """

    # ---- Provider ----
    default_provider: str = Field(
        default="gemini",
        description="默认使用的 Provider 名称，例如 gemini、openai",
    )
    default_model: str = Field(
        default="eva-chat",
        description="Chef Eva 对话使用的逻辑模型名，由 registry 映射为具体厂商模型",
    )

    # Gemini (Google Generative Language API)
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "google_genai_api_key"),
        description="Gemini API 密钥",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini API 基础URL",
    )
    # OpenAI 兼容接口
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI 兼容接口密钥")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI 兼容接口基础URL",
    )
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")

    storage_root: str = Field(default=".storage", description="本地键值存储（额度等）所在目录")
    log_dir: str = Field(default="logs", description="kitchen.log 所在目录")
    log_level: str = Field(default="INFO", description="日志级别，如 DEBUG、INFO、WARNING")
    log_redact_content: bool = Field(default=False, description="为 True 时日志消息截断到 64 个字符")

    # ---- Chef Eva 对话 ----
    max_context_tokens: int = Field(
        default=50000,
        ge=0,
        description="发送给模型的历史上下文估算 token 上限（软上限，最新一条消息总会发送）",
    )
    media_token_cost: int = Field(default=100, ge=0, description="每个图片片段按固定 token 数计入预算")
    chat_quota_max: int = Field(default=30, ge=1, description="Chef Eva 消息额度上限")
    chat_quota_key: str = Field(default="chef_eva_messages_left", description="额度在本地存储中的键名")
    max_image_bytes: int = Field(default=2 * 1024 * 1024, ge=1, description="单张上传图片的最大字节数")
    default_language: str = Field(default="English", description="未指定语言时使用的回复语言")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_kitchen_yaml()

    @field_validator("gemini_api_key", "openai_api_key")
    @classmethod
    def reject_short_api_keys(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        if v and len(v.strip()) < 10:
            raise ValueError("API key is shorter than 10 characters")
        return v.strip() if v else v

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


settings = KitchenSettings()

Settings = type(settings)
