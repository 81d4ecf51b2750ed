"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层或会话层做统一捕获、分类与本地化提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_WRITE_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流错误。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class SchemaValidationError(BusinessError):
    """模型返回的结构化输出不符合约定的 schema。

    message 固定以 "Schema validation failed. Parse Errors: " 开头，
    错误分类器依赖这一格式提取明细。
    """

    def __init__(self, detail: str, **extra):
        super().__init__(
            code="SCHEMA_VALIDATION_FAILED",
            message=f"Schema validation failed. Parse Errors: {detail}",
            http_status=502,
            **extra,
        )
        self.detail = detail


class PromptTemplateError(BusinessError):
    """提示词模板引用了未提供的占位符。"""

    def __init__(self, helper: str, template: str = ""):
        super().__init__(
            code="PROMPT_TEMPLATE_ERROR",
            message=f"Template render failed: unknown helper '{helper}'",
            http_status=500,
            template=template,
        )
        self.helper = helper


class QuotaExhaustedError(BusinessError):
    """Chef Eva 消息额度已用完，请求在调用模型前即被拒绝。"""

    def __init__(self, message: str = "Chef Eva message quota exhausted"):
        super().__init__(code="QUOTA_EXHAUSTED", message=message, http_status=429)


class StoreError(BusinessError):
    """本地存储读写失败。"""
