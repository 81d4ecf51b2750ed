"""统一的对话与补全数据模型。

本模块定义了会话层与各 Provider 之间共享的标准数据结构：

- Part / Media: 一条消息中的一个片段（文本或图片）。
- Turn: 对话中的一轮（user 或 assistant）。
- CompletionRequest: 发给底层 LLM Provider 的完整请求（人设 + 历史 + 当前轮）。
- CompletionResult: 从 Provider 解析后的统一响应结果。

所有 Provider 适配器（如 GeminiClient）都只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Literal, Optional, Any, Dict, List


# 对话角色；Provider 层负责映射为厂商字段（Gemini 使用 "model"）
Role = Literal["user", "assistant"]

ResponseFormat = Literal["text", "json"]


@dataclass
class Media:
    """图片等媒体内容，url 可以是 data URI 或公网地址。"""

    url: str
    content_type: Optional[str] = None


@dataclass
class Part:
    text: Optional[str] = None
    media: Optional[Media] = None

    @property
    def is_empty(self) -> bool:
        return not self.text and self.media is None


@dataclass
class Turn:
    """对话中的一轮消息。

    - role: "user" 或 "assistant"。
    - parts: 有序片段列表；允许为空片段（不影响预算计算）。
    """

    role: Role
    parts: List[Part] = field(default_factory=list)

    @classmethod
    def user_text(cls, text: str) -> "Turn":
        return cls(role="user", parts=[Part(text=text)])

    @classmethod
    def assistant_text(cls, text: str) -> "Turn":
        return cls(role="assistant", parts=[Part(text=text)])

    @property
    def text(self) -> str:
        """拼接所有文本片段，便于日志与展示。"""

        return "\n".join(p.text for p in self.parts if p.text)

    @property
    def media(self) -> List[Media]:
        return [p.media for p in self.parts if p.media is not None]


@dataclass
class CompletionRequest:
    """一次完整的补全请求。

    会话层会先裁剪历史（见 domain.context.build_context），再生成
    CompletionRequest 交给具体 ProviderClient。
    """

    provider: str  # 逻辑 Provider 名，如 "gemini"
    model: str  # 逻辑模型名，如 "eva-chat"（再由 registry 映射为真实模型名）
    current_turn: Turn
    history: List[Turn] = field(default_factory=list)
    system_persona: Optional[str] = None
    language_name: str = "English"
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    # "json" 时要求模型只输出 JSON 对象
    response_format: ResponseFormat = "text"


@dataclass
class CompletionUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class CompletionResult:
    """一次补全调用的最终结果。

    - text: 模型输出的全部文本；模型未给出内容时为空字符串。
    - finish_reason: 厂商返回的结束原因（如 "STOP"、"SAFETY"）。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    provider: str
    model: str
    text: str
    finish_reason: Optional[str] = None
    usage: Optional[CompletionUsage] = None
    raw: Optional[Dict[str, Any]] = None
