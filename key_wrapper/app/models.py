"""
Error Models Module

Every failure the wrapper reports uses the same flat record:

    {"type": "invalid_request_error", "code": "...", "message": "...", "param": null}

The set of codes is fixed. Each code maps to one HTTP status and one message,
and ``error_response`` is the only place that turns a code into a response.
"""

from enum import Enum
from typing import Dict, NamedTuple, Optional

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


ERROR_TYPE = "invalid_request_error"

ERROR_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Content-Type": "application/json;charset=UTF-8",
}


class ErrorCode(str, Enum):
    """Machine-readable wrapper error codes."""

    NO_ENDPOINT_URL_IN_ENV = "wrapper_custom_no_endpoint_url_in_env"
    NO_DUMMY_KEY_IN_ENV = "wrapper_custom_no_dummy_key_in_env"
    NO_DUMMY_KEY_IN_AUTHORIZATION = "wrapper_custom_no_dummy_key_in_authorization"
    INVALID_DUMMY_KEY = "wrapper_custom_invalid_dummy_key"
    NO_REAL_KEY_IN_ENV = "wrapper_custom_no_real_key_in_env"
    DUMMY_KEY_EQUALS_TO_REAL_KEY = "wrapper_custom_dummy_key_equals_to_real_key"
    UNKNOWN_URL = "unknown_url"
    FORWARDING_FAILED = "wrapper_forwarding_failed"


class ErrorDetail(NamedTuple):
    status_code: int
    message: str


ERROR_DETAILS: Dict[ErrorCode, ErrorDetail] = {
    ErrorCode.NO_ENDPOINT_URL_IN_ENV: ErrorDetail(
        status.HTTP_400_BAD_REQUEST,
        "(OpenAI Wrapper) You did not provide a gateway URL in environment variables. "
        "Please add AI_GATEWAY_ENDPOINT_URL to the service environment.",
    ),
    ErrorCode.NO_DUMMY_KEY_IN_ENV: ErrorDetail(
        status.HTTP_400_BAD_REQUEST,
        "(OpenAI Wrapper) You did not provide a dummy wrapper key in environment variables. "
        "Please add DUMMY_WRAPPER_KEY to the service environment.",
    ),
    ErrorCode.NO_DUMMY_KEY_IN_AUTHORIZATION: ErrorDetail(
        status.HTTP_401_UNAUTHORIZED,
        "(OpenAI Wrapper) You did not provide a dummy key in the Authorization header.",
    ),
    ErrorCode.INVALID_DUMMY_KEY: ErrorDetail(
        status.HTTP_400_BAD_REQUEST,
        "(OpenAI Wrapper) You did not provide the correct dummy key. "
        "Note that you should NOT provide the real OpenAI key here; it is not accepted.",
    ),
    ErrorCode.NO_REAL_KEY_IN_ENV: ErrorDetail(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "(OpenAI Wrapper) You did not provide the real OpenAI key. "
        "Please add REAL_OPENAI_KEY to the service environment.",
    ),
    ErrorCode.DUMMY_KEY_EQUALS_TO_REAL_KEY: ErrorDetail(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "(OpenAI Wrapper) The dummy key cannot be the same as the real OpenAI key, "
        "to prevent the real key from being misused elsewhere. "
        "Please change DUMMY_WRAPPER_KEY in the service environment.",
    ),
    ErrorCode.UNKNOWN_URL: ErrorDetail(
        status.HTTP_400_BAD_REQUEST,
        "(OpenAI Wrapper) Your URL does not start with /v1",
    ),
    ErrorCode.FORWARDING_FAILED: ErrorDetail(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "(OpenAI Wrapper) Failed to forward the request to the AI gateway.",
    ),
}


class ErrorRecord(BaseModel):
    """Structured error body returned for every wrapper failure."""

    type: str = Field(default=ERROR_TYPE, description="Error category")
    code: ErrorCode = Field(..., description="Stable machine-readable identifier")
    message: str = Field(..., description="Human-readable diagnostic")
    param: Optional[str] = Field(default=None, description="Always null")

    @classmethod
    def from_code(cls, code: ErrorCode) -> "ErrorRecord":
        return cls(code=code, message=ERROR_DETAILS[code].message)


class WrapperError(Exception):
    """
    Raised where a wrapper failure is detected.

    The FastAPI exception handler in ``main`` renders it with ``error_response``.
    """

    def __init__(self, code: ErrorCode):
        self.code = code
        self.status_code = ERROR_DETAILS[code].status_code
        super().__init__(code.value)


def error_response(code: ErrorCode) -> JSONResponse:
    """
    Build the JSON error response for a wrapper error code.

    Args:
        code: Wrapper error code

    Returns:
        JSONResponse with the flat error record, CORS and content-type headers
    """
    record = ErrorRecord.from_code(code)
    return JSONResponse(
        status_code=ERROR_DETAILS[code].status_code,
        content=record.model_dump(mode="json"),
        headers=ERROR_HEADERS,
    )
