"""OpenAI 兼容 Provider 适配器。

适用于任何提供 chat/completions 端点的服务：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

人设放在 system 消息中；用户轮次中的图片使用 image_url 内容片段
（data URI 与公网 URL 均可直接传入）。
"""

from typing import Any, Dict, List

import httpx

from kitchen_core.config.settings import Settings, settings
from kitchen_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from kitchen_core.domain.models import (
    CompletionRequest,
    CompletionResult,
    CompletionUsage,
    Turn,
)
from kitchen_core.providers.base import describe_http_error
from kitchen_core.providers.registry import OPENAI_CONFIG, ModelConfig


class OpenAIClient:
    """OpenAI 兼容接口客户端实现。"""

    name = "openai"

    def __init__(self, cfg: Settings = settings):
        self._settings = cfg

    def generate(self, req: CompletionRequest) -> CompletionResult:
        api_key = getattr(self._settings, "openai_api_key", None)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message="OPENAI API key not set")
        model_cfg = OPENAI_CONFIG.model(req.model)
        payload = self._build_payload(req, model_cfg)
        base = getattr(self._settings, "openai_base_url", None) or OPENAI_CONFIG.base_url
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{base}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code == 429:
            raise RateLimitError(
                code="RATE_LIMIT",
                message=describe_http_error(resp, "OpenAI rate limit"),
                http_status=429,
            )
        if resp.status_code >= 400:
            message = describe_http_error(resp, resp.text)
            code = "INVALID_API_KEY" if resp.status_code == 401 else "API_ERROR"
            raise ApiError(code=code, message=message, http_status=resp.status_code)
        return self._parse_response(resp.json(), req)

    def _build_payload(self, req: CompletionRequest, model_cfg: ModelConfig) -> Dict[str, Any]:
        msgs: List[Dict[str, Any]] = []
        if req.system_persona:
            msgs.append({"role": "system", "content": req.system_persona})
        msgs.extend(self._turn_to_message(t) for t in req.history)
        msgs.append(self._turn_to_message(req.current_turn))
        payload: Dict[str, Any] = {
            "model": model_cfg.provider_model,
            "messages": msgs,
            "temperature": req.temperature or model_cfg.default_temperature,
            "max_tokens": req.max_tokens or model_cfg.max_tokens,
        }
        if req.response_format == "json":
            payload["response_format"] = {"type": "json_object"}
        return payload

    @staticmethod
    def _turn_to_message(turn: Turn) -> Dict[str, Any]:
        if turn.role == "assistant" or not turn.media:
            return {"role": turn.role, "content": turn.text}
        content: List[Dict[str, Any]] = []
        for part in turn.parts:
            if part.text:
                content.append({"type": "text", "text": part.text})
            if part.media is not None:
                content.append({"type": "image_url", "image_url": {"url": part.media.url}})
        return {"role": "user", "content": content}

    def _parse_response(self, data: Dict[str, Any], req: CompletionRequest) -> CompletionResult:
        choices = data.get("choices") or []
        text = ""
        finish_reason = None
        if choices:
            msg = choices[0].get("message") or {}
            text = msg.get("content") or ""
            finish_reason = choices[0].get("finish_reason")
        usage_raw = data.get("usage") or {}
        usage = CompletionUsage(
            prompt_tokens=usage_raw.get("prompt_tokens", 0),
            completion_tokens=usage_raw.get("completion_tokens", 0),
            total_tokens=usage_raw.get("total_tokens", 0),
        )
        return CompletionResult(
            provider=self.name,
            model=req.model,
            text=text,
            finish_reason=finish_reason,
            usage=usage,
            raw=data,
        )
