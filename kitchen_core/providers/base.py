"""Provider 抽象接口。

会话层与各个 flow 不直接依赖具体厂商的 HTTP 接口，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 GeminiClient）。
- 负责：将 CompletionRequest 转成具体 API 请求，并把响应 JSON 解析为 CompletionResult。
"""

from typing import Any, Protocol

from kitchen_core.domain.models import CompletionRequest, CompletionResult


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - generate(req): 执行一次补全调用，返回统一的 CompletionResult；
      失败时抛出 domain.exceptions 中的 BusinessError 子类。
    """

    name: str

    def generate(self, req: CompletionRequest) -> CompletionResult:
        ...


def describe_http_error(resp: Any, default: str) -> str:
    """拼出 "[<status> <reason>] <厂商错误信息>" 形式的错误文本。

    Gemini 与 OpenAI 兼容接口的错误体都是 {"error": {"message": ...}}，
    解析不到时使用 default。
    """

    detail = default
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            detail = err["message"]
    reason = getattr(resp, "reason_phrase", "") or ""
    prefix = f"[{resp.status_code} {reason}]" if reason else f"[{resp.status_code}]"
    return f"{prefix} {detail}"
