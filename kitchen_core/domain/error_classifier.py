"""失败原因分类。

Provider 与模型之间没有稳定的错误码约定，这里按固定顺序对错误文本做子串匹配，
命中即返回。对本项目自己的 BusinessError 子类，先参考其结构化字段
（异常类型、code、http_status），再退回到文本匹配。
"""

import re
from dataclasses import dataclass
from enum import Enum

from .exceptions import (
    BusinessError,
    PromptTemplateError,
    SchemaValidationError,
)


class ErrorKind(str, Enum):
    BUSY = "busy"
    CONFIG_ISSUE = "config_issue"
    SCHEMA_VIOLATION = "schema_violation"
    UNKNOWN_TEMPLATE_HELPER = "unknown_template_helper"
    GENERIC = "generic"


DEFAULT_SCHEMA_DETAIL = "Please check the data format."
DEFAULT_HELPER_NAME = "unknown"

_PARSE_ERRORS_RE = re.compile(r"Parse Errors:\s*(.*?)(?:\s*\(.*)?$", re.DOTALL)
_HELPER_RE = re.compile(r"unknown helper\s*[`'\"]([^`'\"]+)[`'\"]")

_CONFIG_CODES = {"MISSING_API_KEY", "INVALID_API_KEY"}


@dataclass(frozen=True)
class ErrorClassification:
    kind: ErrorKind
    detail: str


def classify(failure: BaseException) -> ErrorClassification:
    """把捕获到的异常映射为 ErrorClassification。"""

    message = _message_of(failure)
    if isinstance(failure, BusinessError):
        kind = _kind_from_structure(failure)
        if kind is not None:
            return ErrorClassification(kind=kind, detail=_detail_for(kind, message))
    return classify_message(message)


def classify_message(message: str) -> ErrorClassification:
    """只根据错误文本分类，规则按顺序匹配。"""

    if "503" in message or "overloaded" in message:
        kind = ErrorKind.BUSY
    elif "API key" in message:
        kind = ErrorKind.CONFIG_ISSUE
    elif "Schema validation failed" in message or "Parse Errors" in message:
        kind = ErrorKind.SCHEMA_VIOLATION
    elif "unknown helper" in message:
        kind = ErrorKind.UNKNOWN_TEMPLATE_HELPER
    else:
        kind = ErrorKind.GENERIC
    return ErrorClassification(kind=kind, detail=_detail_for(kind, message))


def extract_schema_detail(message: str) -> str:
    match = _PARSE_ERRORS_RE.search(message)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return DEFAULT_SCHEMA_DETAIL


def extract_helper_name(message: str) -> str:
    match = _HELPER_RE.search(message)
    return match.group(1) if match else DEFAULT_HELPER_NAME


def _kind_from_structure(failure: BusinessError) -> ErrorKind | None:
    if isinstance(failure, SchemaValidationError):
        return ErrorKind.SCHEMA_VIOLATION
    if isinstance(failure, PromptTemplateError):
        return ErrorKind.UNKNOWN_TEMPLATE_HELPER
    if failure.code in _CONFIG_CODES:
        return ErrorKind.CONFIG_ISSUE
    if failure.http_status == 503:
        return ErrorKind.BUSY
    return None


def _detail_for(kind: ErrorKind, message: str) -> str:
    if kind is ErrorKind.SCHEMA_VIOLATION:
        return extract_schema_detail(message)
    if kind is ErrorKind.UNKNOWN_TEMPLATE_HELPER:
        return extract_helper_name(message)
    return message


def _message_of(failure: BaseException) -> str:
    if isinstance(failure, BusinessError):
        return failure.message
    return str(failure)
