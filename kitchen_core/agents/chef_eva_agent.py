"""Chef Eva 对话会话。

一个 ChefEvaSession 独占一段对话记录和一个额度计数器，调用方需保证
同一会话上同一时间只有一次 send 在执行。

send 的处理顺序：
1. 空消息直接忽略；图片只接受不超过上限的 JPEG/PNG data URI。
2. 额度耗尽时在任何模型调用之前拒绝。
3. 追加用户消息，按 token 预算裁剪历史。
4. 在 quota.reserve() 中调用模型：失败或回复格式错误时自动退还额度，
   对话回滚到发送前，并返回本地化的错误提示。
5. 模型正常返回但没有内容时不退还额度，追加一条“未回复”提示。
"""

import base64
import binascii
import re
import time
from dataclasses import dataclass
from typing import List, Literal, Optional
from uuid import uuid4

from kitchen_core.config.settings import settings
from kitchen_core.domain.context import ContextWindow, build_context
from kitchen_core.domain.conversation import Conversation
from kitchen_core.domain.error_classifier import ErrorClassification, classify
from kitchen_core.domain.exceptions import QuotaExhaustedError, ValidationError
from kitchen_core.domain.models import CompletionRequest, Media, Part, Turn
from kitchen_core.domain.quota import QuotaState, QuotaTracker
from kitchen_core.flows.base import CamelModel, error_message, parse_structured_reply
from kitchen_core.i18n import Localizer, get_localizer, resolve_code
from kitchen_core.infrastructure.logging.logger import logger
from kitchen_core.prompts import render_prompt
from kitchen_core.providers.base import ProviderClient

SendStatus = Literal["replied", "no_reply", "failed", "quota_exhausted", "ignored", "invalid_input"]

_IMAGE_DATA_URI_RE = re.compile(r"^data:(image/(?:jpeg|png));base64,(.*)$", re.DOTALL)


class ChefEvaReply(CamelModel):
    response: str


@dataclass
class SendOutcome:
    """一次 send 的结果。

    - message: 展示给用户的文本（Eva 的回复或本地化错误提示），ignored 时为 None。
    - error: 失败时的分类结果。
    """

    status: SendStatus
    remaining_quota: int
    message: Optional[str] = None
    error: Optional[ErrorClassification] = None
    dropped_turns: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "replied"


class ChefEvaSession:
    def __init__(
        self,
        provider_client: ProviderClient,
        quota: QuotaTracker,
        language: Optional[str] = None,
        *,
        model_name: Optional[str] = None,
        temperature: float = 0.9,
        context_budget: Optional[int] = None,
        media_token_cost: Optional[int] = None,
        max_image_bytes: Optional[int] = None,
    ):
        self._provider = provider_client
        self._quota = quota
        self._language = language or getattr(settings, "default_language", "English")
        self._model = model_name or getattr(settings, "default_model", "eva-chat")
        self._temperature = temperature
        self._budget = context_budget if context_budget is not None else settings.max_context_tokens
        self._media_cost = media_token_cost if media_token_cost is not None else settings.media_token_cost
        self._max_image_bytes = max_image_bytes or settings.max_image_bytes
        self._conversation = Conversation.seeded(self._loc.text("chat", "greeting"))

    @property
    def language(self) -> str:
        return self._language

    @property
    def turns(self) -> List[Turn]:
        return list(self._conversation)

    @property
    def remaining_quota(self) -> int:
        return self._quota.remaining

    @property
    def quota_state(self) -> QuotaState:
        return self._quota.state

    @property
    def _loc(self) -> Localizer:
        return get_localizer(self._language)

    def reset(self) -> None:
        """清空对话，只保留问候语；额度不受影响。"""

        self._conversation.reset(self._loc.text("chat", "greeting"))

    def set_language(self, language: str) -> None:
        """切换回复语言，对话随之重置为新语言的问候语。"""

        if language == self._language:
            return
        self._language = language
        self.reset()

    def send(self, text: Optional[str] = None, image_data_uri: Optional[str] = None) -> SendOutcome:
        loc = self._loc
        text = (text or "").strip()
        if not text and not image_data_uri:
            return SendOutcome(status="ignored", remaining_quota=self._quota.remaining)

        parts: List[Part] = []
        if text:
            parts.append(Part(text=text))
        if image_data_uri:
            try:
                parts.append(Part(media=self._parse_image(image_data_uri)))
            except ValidationError as e:
                key = "image_too_large" if e.code == "IMAGE_TOO_LARGE" else "invalid_image"
                return SendOutcome(
                    status="invalid_input",
                    remaining_quota=self._quota.remaining,
                    message=loc.text("chat", key, limit=_format_bytes(self._max_image_bytes)),
                )

        trace_id = f"tr-{uuid4().hex}"
        log_ctx = {"trace_id": trace_id, "provider": self._provider.name, "model": self._model}
        if self._quota.state is QuotaState.EXHAUSTED:
            logger.info("Chef Eva quota exhausted, send rejected", extra={"extra": log_ctx})
            return self._quota_exhausted(loc)

        new_turn = Turn(role="user", parts=parts)
        snapshot = self._conversation.snapshot()
        window = build_context(snapshot, new_turn, self._budget, self._media_cost)
        self._conversation.append(new_turn)
        log_ctx["dropped_turns"] = window.dropped_turns
        log_ctx["context_tokens"] = window.estimated_tokens

        start = time.time()
        try:
            with self._quota.reserve():
                reply = self._call(window)
        except QuotaExhaustedError:
            self._conversation.restore(snapshot)
            return self._quota_exhausted(loc)
        except Exception as e:
            self._conversation.restore(snapshot)
            classification = classify(e)
            log_ctx["error_kind"] = classification.kind.value
            log_ctx["remaining_quota"] = self._quota.remaining
            logger.error(f"Chef Eva call failed: {e}", exc_info=True, extra={"extra": log_ctx})
            detail = error_message(loc, "chat", classification)
            return SendOutcome(
                status="failed",
                remaining_quota=self._quota.remaining,
                message=f"Error ({resolve_code(self._language)}): {detail}",
                error=classification,
                dropped_turns=window.dropped_turns,
            )

        log_ctx["elapsed_seconds"] = round(time.time() - start, 3)
        log_ctx["remaining_quota"] = self._quota.remaining
        if not reply:
            logger.warning("Chef Eva returned an empty reply", extra={"extra": log_ctx})
            message = loc.text("chat", "no_reply")
            self._conversation.append(Turn.assistant_text(message))
            return SendOutcome(
                status="no_reply",
                remaining_quota=self._quota.remaining,
                message=message,
                dropped_turns=window.dropped_turns,
            )

        logger.info("Chef Eva replied", extra={"extra": log_ctx})
        self._conversation.append(Turn.assistant_text(reply))
        return SendOutcome(
            status="replied",
            remaining_quota=self._quota.remaining,
            message=reply,
            dropped_turns=window.dropped_turns,
        )

    def _call(self, window: ContextWindow) -> Optional[str]:
        """调用模型，返回 Eva 的回复文本；没有内容时返回 None。"""

        persona = render_prompt("chef_eva_system", language=self._language)
        req = CompletionRequest(
            provider=self._provider.name,
            model=self._model,
            current_turn=window.current_turn,
            history=window.history,
            system_persona=persona,
            language_name=self._language,
            temperature=self._temperature,
            response_format="json",
        )
        result = self._provider.generate(req)
        if not result.text or not result.text.strip():
            return None
        parsed = parse_structured_reply(result.text, ChefEvaReply)
        return parsed.response.strip() or None

    def _parse_image(self, data_uri: str) -> Media:
        match = _IMAGE_DATA_URI_RE.match(data_uri)
        if not match:
            raise ValidationError(code="INVALID_IMAGE", message="Image must be a JPEG or PNG data URI")
        try:
            raw = base64.b64decode(match.group(2), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(code="INVALID_IMAGE", message="Image data is not valid base64")
        if len(raw) > self._max_image_bytes:
            raise ValidationError(
                code="IMAGE_TOO_LARGE",
                message=f"Image is {len(raw)} bytes, limit is {self._max_image_bytes}",
            )
        return Media(url=data_uri, content_type=match.group(1))

    def _quota_exhausted(self, loc: Localizer) -> SendOutcome:
        return SendOutcome(
            status="quota_exhausted",
            remaining_quota=self._quota.remaining,
            message=loc.text("chat", "quota_exhausted"),
            error=None,
        )


def _format_bytes(size: int) -> str:
    """2097152 -> "2MB"，1536 -> "1.5KB"，不足 1KB 时按字节显示。"""

    for unit, factor in (("MB", 1024 * 1024), ("KB", 1024)):
        if size >= factor:
            return f"{size / factor:g}{unit}"
    return f"{size} bytes"
