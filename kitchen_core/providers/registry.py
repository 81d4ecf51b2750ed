"""Provider 与模型配置。

本模块将“逻辑模型名”与“具体厂商模型名”解耦：

- 逻辑名（logical_name）：代码里使用的统一名称，例如 "eva-chat"、"recipe"。
- provider_model：厂商实际提供的模型 ID，例如 "gemini-1.5-pro"。

对话与菜单规划使用能力更强的模型，普通菜谱类 flow 使用更快的模型。"""

from dataclasses import dataclass
from typing import Dict, Mapping

from kitchen_core.domain.exceptions import ValidationError


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    max_tokens: int
    default_temperature: float


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]

    def model(self, logical_name: str) -> ModelConfig:
        try:
            return self.models[logical_name]
        except KeyError:
            raise ValidationError(
                code="UNKNOWN_MODEL",
                message=f"Unknown model {logical_name!r} for provider {self.name}",
            )


# Google Generative Language API
GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    base_url="https://generativelanguage.googleapis.com/v1beta",
    models={
        "eva-chat": ModelConfig(
            logical_name="eva-chat",
            provider_model="gemini-1.5-pro",
            max_tokens=8192,
            default_temperature=0.9,
        ),
        "recipe": ModelConfig(
            logical_name="recipe",
            provider_model="gemini-1.5-flash",
            max_tokens=8192,
            default_temperature=0.7,
        ),
        "pro-menu": ModelConfig(
            logical_name="pro-menu",
            provider_model="gemini-1.5-pro",
            max_tokens=8192,
            default_temperature=0.7,
        ),
    },
)

# OpenAI 兼容接口
OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    models={
        "eva-chat": ModelConfig(
            logical_name="eva-chat",
            provider_model="gpt-4o",
            max_tokens=4096,
            default_temperature=0.9,
        ),
        "recipe": ModelConfig(
            logical_name="recipe",
            provider_model="gpt-4o-mini",
            max_tokens=4096,
            default_temperature=0.7,
        ),
        "pro-menu": ModelConfig(
            logical_name="pro-menu",
            provider_model="gpt-4o",
            max_tokens=4096,
            default_temperature=0.7,
        ),
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "gemini": GEMINI_CONFIG,
    "openai": OPENAI_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
