"""Gemini Provider 适配器。

本模块负责：

1. 接收统一的 CompletionRequest。
2. 将其转换为 Google Generative Language API 的 generateContent 请求：
   - systemInstruction: 人设提示词
   - contents: 历史轮次 + 当前轮（assistant 映射为 "model"）
   - 图片：data URI 走 inlineData，公网 URL 走 fileData
3. 调用 HTTP 接口并处理网络/API 异常。
4. 将响应 JSON 解析为统一的 CompletionResult。

API 错误信息保留 HTTP 状态码与厂商原文（如 "[503 Service Unavailable] The model
is overloaded."），错误分类器据此识别繁忙、配置错误等情况。
"""

import re
from typing import Any, Dict, List, Optional

import httpx

from kitchen_core.config.settings import Settings, settings
from kitchen_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from kitchen_core.domain.models import (
    CompletionRequest,
    CompletionResult,
    CompletionUsage,
    Media,
    Turn,
)
from kitchen_core.providers.base import describe_http_error
from kitchen_core.providers.registry import GEMINI_CONFIG, ModelConfig

_DATA_URI_RE = re.compile(r"^data:([^;,]+);base64,(.*)$", re.DOTALL)


class GeminiClient:
    """Gemini 提供方客户端实现。"""

    name = "gemini"

    def __init__(self, cfg: Settings = settings):
        self._settings = cfg

    def generate(self, req: CompletionRequest) -> CompletionResult:
        """执行一次 generateContent 调用。"""

        api_key = getattr(self._settings, "gemini_api_key", None)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message="GEMINI API key not set")
        model_cfg = GEMINI_CONFIG.model(req.model)
        payload = self._build_payload(req, model_cfg)
        base = getattr(self._settings, "gemini_base_url", None) or GEMINI_CONFIG.base_url
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{base}/models/{model_cfg.provider_model}:generateContent",
                    json=payload,
                    headers={
                        "x-goog-api-key": api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code == 429:
            raise RateLimitError(
                code="RATE_LIMIT",
                message=describe_http_error(resp, "Gemini rate limit"),
                http_status=429,
            )
        if resp.status_code >= 400:
            message = describe_http_error(resp, resp.text)
            code = "INVALID_API_KEY" if "API key" in message else "API_ERROR"
            raise ApiError(code=code, message=message, http_status=resp.status_code)
        return self._parse_response(resp.json(), req)

    def _build_payload(self, req: CompletionRequest, model_cfg: ModelConfig) -> Dict[str, Any]:
        """将 CompletionRequest 转成 generateContent 所需的请求 JSON。"""

        contents = [self._turn_to_content(t) for t in req.history]
        contents.append(self._turn_to_content(req.current_turn))
        generation_config: Dict[str, Any] = {
            "temperature": req.temperature or model_cfg.default_temperature,
            "maxOutputTokens": req.max_tokens or model_cfg.max_tokens,
        }
        if req.response_format == "json":
            generation_config["responseMimeType"] = "application/json"
        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if req.system_persona:
            payload["systemInstruction"] = {"parts": [{"text": req.system_persona}]}
        return payload

    def _turn_to_content(self, turn: Turn) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        for part in turn.parts:
            if part.text:
                parts.append({"text": part.text})
            if part.media is not None:
                parts.append(self._media_to_part(part.media))
        if not parts:
            # Gemini 不接受空 parts
            parts.append({"text": ""})
        return {"role": "model" if turn.role == "assistant" else "user", "parts": parts}

    @staticmethod
    def _media_to_part(media: Media) -> Dict[str, Any]:
        match = _DATA_URI_RE.match(media.url)
        if match:
            return {
                "inlineData": {
                    "mimeType": media.content_type or match.group(1),
                    "data": match.group(2),
                }
            }
        file_data: Dict[str, Any] = {"fileUri": media.url}
        if media.content_type:
            file_data["mimeType"] = media.content_type
        return {"fileData": file_data}

    def _parse_response(self, data: Dict[str, Any], req: CompletionRequest) -> CompletionResult:
        """将 generateContent 的原始响应解析为 CompletionResult。

        候选为空（例如被安全策略拦截）时返回空文本，finish_reason 记录拦截原因。
        """

        candidates = data.get("candidates") or []
        text = ""
        finish_reason: Optional[str] = None
        if candidates:
            first = candidates[0]
            content = first.get("content") or {}
            text = "".join(p.get("text", "") for p in content.get("parts") or [])
            finish_reason = first.get("finishReason")
        else:
            feedback = data.get("promptFeedback") or {}
            finish_reason = feedback.get("blockReason")
        usage_raw = data.get("usageMetadata") or {}
        usage = CompletionUsage(
            prompt_tokens=usage_raw.get("promptTokenCount", 0),
            completion_tokens=usage_raw.get("candidatesTokenCount", 0),
            total_tokens=usage_raw.get("totalTokenCount", 0),
        )
        return CompletionResult(
            provider=self.name,
            model=req.model,
            text=text,
            finish_reason=finish_reason,
            usage=usage,
            raw=data,
        )

