from enum import Enum
from typing import Any

from .models import GavagaiError, SchemaError


class ErrorCode(str, Enum):
    SCHEMA_VIOLATION = "SCHEMA_VIOLATION"
    UNKNOWN_OPERATION = "UNKNOWN_OPERATION"
    UNKNOWN_ENTITY = "UNKNOWN_ENTITY"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    BALANCE_MISMATCH = "BALANCE_MISMATCH"
    INVALID_DATE = "INVALID_DATE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    UNPARSEABLE = "UNPARSEABLE"
    NOT_AN_INTENTION = "NOT_AN_INTENTION"
    DISALLOWED_OP = "DISALLOWED_OP"
    PARSE_ERROR = "PARSE_ERROR"
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
    INVOCATION_FAILED = "INVOCATION_FAILED"


class GavagaiException(Exception):
    """Uniform failure surface: a stable code, a message and structured context."""

    def __init__(self, code: ErrorCode | str, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.context = context

    def to_error(self) -> GavagaiError:
        return GavagaiError(code=self.code, message=self.message, context=self.context)


class ResponseParseError(GavagaiException):
    def __init__(self, raw_text: str, error: str, kind: str, schema_errors: list[SchemaError] | None = None):
        code = ErrorCode.SCHEMA_VIOLATION if kind == "schema_validation" else ErrorCode.PARSE_ERROR
        super().__init__(code, f"Model output failure ({kind}): {error}", {"kind": kind})
        self.raw_text = raw_text
        self.error = error
        self.kind = kind
        self.schema_errors = list(schema_errors or [])


class ProviderNotConfigured(GavagaiException):
    def __init__(self, provider: str):
        super().__init__(
            ErrorCode.PROVIDER_NOT_CONFIGURED,
            f"No adapter registered for provider: {provider}. "
            "Call register_adapter() with an adapter for this provider.",
            {"provider": provider},
        )
        self.provider = provider


class InvocationFailed(GavagaiException):
    def __init__(self, provider: str, original: BaseException):
        context: dict[str, Any] = {"provider": provider, "originalError": str(original)}
        status = getattr(original, "status", None)
        if status is not None:
            context["status"] = status
        super().__init__(ErrorCode.INVOCATION_FAILED, f"LLM invocation failed: {original}", context)


class UnparseableResponse(GavagaiException):
    def __init__(self, raw_response: str, cause: ResponseParseError):
        super().__init__(
            ErrorCode.UNPARSEABLE,
            f"Failed to parse LLM response as valid GavagaiResponse: {cause.error}",
            {
                "rawResponse": raw_response,
                "kind": cause.kind,
                "schemaErrors": [err.model_dump() for err in cause.schema_errors],
            },
        )
        self.raw_response = raw_response
