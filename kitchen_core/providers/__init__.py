"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供各厂商的具体实现 (gemini_client、openai_client)。
"""

from typing import Literal, Optional

from kitchen_core.config.settings import settings
from kitchen_core.providers.base import ProviderClient
from kitchen_core.providers.gemini_client import GeminiClient
from kitchen_core.providers.openai_client import OpenAIClient


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    provider_name = (name or getattr(settings, "default_provider", "gemini")).lower()
    if provider_name == "openai":
        return OpenAIClient(settings)
    return GeminiClient(settings)


DefaultProviderName = Literal["gemini", "openai"]
