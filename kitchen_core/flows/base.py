"""菜谱类 flow 的公共部分。

每个 flow 都是：校验输入 -> 渲染提示词 -> 调用 Provider（JSON 模式）
-> 用 pydantic 模型校验结构化输出；失败时由 error_classifier 分类，
再映射为对应语言的标题/说明。
"""

import json
import re
import time
from typing import Optional, Tuple, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from kitchen_core.domain.error_classifier import ErrorClassification, ErrorKind
from kitchen_core.domain.exceptions import SchemaValidationError, ValidationError
from kitchen_core.domain.models import CompletionRequest, Turn
from kitchen_core.i18n import Localizer
from kitchen_core.infrastructure.logging.logger import logger
from kitchen_core.providers.base import ProviderClient

OutputT = TypeVar("OutputT", bound=BaseModel)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

# ErrorKind -> 文案键前缀
_KIND_KEYS = {
    ErrorKind.BUSY: "busy",
    ErrorKind.CONFIG_ISSUE: "config",
    ErrorKind.SCHEMA_VIOLATION: "schema",
    ErrorKind.UNKNOWN_TEMPLATE_HELPER: "template",
    ErrorKind.GENERIC: "generic",
}


class CamelModel(BaseModel):
    """字段用 snake_case，序列化/反序列化使用 camelCase 别名。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def parse_input(model_cls: Type[OutputT], payload: dict) -> OutputT:
    """校验调用方传入的请求体，失败时转为 ValidationError。"""

    try:
        return model_cls.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(code="INVALID_INPUT", message=_format_errors(e))


def parse_structured_reply(text: str, model_cls: Type[OutputT]) -> OutputT:
    """把模型回复解析为 model_cls，JSON 或字段不合法时抛 SchemaValidationError。"""

    body = text.strip()
    fenced = _FENCE_RE.match(body)
    if fenced:
        body = fenced.group(1)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise SchemaValidationError(f"reply is not valid JSON: {e.msg} at position {e.pos}")
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise SchemaValidationError(_format_errors(e))


def run_structured(
    provider: ProviderClient,
    *,
    flow: str,
    prompt: str,
    model: str,
    output_model: Type[OutputT],
    language: str = "English",
    system_persona: Optional[str] = None,
    temperature: float = 0.7,
) -> Optional[OutputT]:
    """调用一次 Provider 并解析结构化输出；模型返回空内容时返回 None。"""

    trace_id = f"tr-{uuid4().hex}"
    log_ctx = {"trace_id": trace_id, "flow": flow, "provider": provider.name, "model": model}
    req = CompletionRequest(
        provider=provider.name,
        model=model,
        current_turn=Turn.user_text(prompt),
        system_persona=system_persona,
        language_name=language,
        temperature=temperature,
        response_format="json",
    )
    start = time.time()
    logger.info("Calling provider", extra={"extra": log_ctx})
    result = provider.generate(req)
    log_ctx["elapsed_seconds"] = round(time.time() - start, 3)
    log_ctx["finish_reason"] = result.finish_reason
    if result.usage:
        log_ctx["total_tokens"] = result.usage.total_tokens
    if not result.text or not result.text.strip():
        logger.warning("Provider returned empty output", extra={"extra": log_ctx})
        return None
    logger.info("Provider call finished", extra={"extra": log_ctx})
    return parse_structured_reply(result.text, output_model)


def error_message(loc: Localizer, section: str, classification: ErrorClassification) -> str:
    """单条错误文案，用于 chat / explain 这类只有一段文字的结果。"""

    if classification.kind is ErrorKind.GENERIC and not classification.detail:
        return loc.text(section, "unexpected")
    return loc.text(section, _KIND_KEYS[classification.kind], message=classification.detail)


def error_title_notes(loc: Localizer, section: str, classification: ErrorClassification) -> Tuple[str, str]:
    """(标题, 说明) 形式的错误文案，用于 recipe / refine / menu。"""

    if classification.kind is ErrorKind.GENERIC and not classification.detail:
        return loc.text(section, "fail_title"), loc.text(section, "unexpected_notes")
    prefix = _KIND_KEYS[classification.kind]
    return (
        loc.text(section, f"{prefix}_title"),
        loc.text(section, f"{prefix}_notes", message=classification.detail),
    )


def _format_errors(e: PydanticValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "root"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)
