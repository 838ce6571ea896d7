"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在命令层（api.service）做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 path、runner 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class MissingInputError(BusinessError):
    """必填输入缺失：文档 ID、工作区目录等。"""


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """模型 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """模型 API 限流错误，当前不自动重试。"""


class ValidationError(BusinessError):
    """参数或配置校验失败（如缺少 API Key）。"""


class OperationCancelled(BusinessError):
    """调用方通过 CancellationToken 取消了当前操作。"""

    def __init__(self, message: str = "Operation cancelled", **extra):
        super().__init__(code="CANCELLED", message=message, **extra)
