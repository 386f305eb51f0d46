from __future__ import annotations


class DomainError(Exception):
    def __init__(self, error_code: str, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.retryable = retryable


class ValidationError(DomainError):
    def __init__(self, message: str = "Validation failed.") -> None:
        super().__init__("VALIDATION_FAILED", message, retryable=False)


class ConfigurationError(DomainError):
    def __init__(self, message: str = "Invalid configuration.") -> None:
        super().__init__("CONFIGURATION_ERROR", message, retryable=False)


class RemoteCallError(DomainError):
    """원격 Frappe 메서드 호출이 실패했을 때 발생해요.

    전송 오류, 비정상 HTTP 상태, JSON으로 해석할 수 없는 응답을 모두 포함해요.
    재시도는 하지 않으므로 ``retryable``은 정보 용도로만 남겨요.
    """

    def __init__(
        self,
        message: str = "Remote call failed.",
        *,
        method: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            "REMOTE_CALL_FAILED",
            message,
            retryable=status_code is None or status_code >= 500,
        )
        self.method = method
        self.status_code = status_code
