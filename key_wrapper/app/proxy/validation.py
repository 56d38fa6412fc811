"""
Request Validation Pipeline
===========================

Ordered checks run before anything is forwarded. The first failing check
raises ``WrapperError`` and ends the request.

Order matters: the real key checks come after the dummy key has been
verified, so a caller without a valid dummy key cannot probe whether the real
key is configured. The path check runs last.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..auth import extract_wrapper_key, verify_wrapper_key
from ..config import WrapperCredentials
from ..models import ErrorCode, WrapperError

ROUTE_PREFIX = "/v1"


@dataclass(frozen=True)
class RequestContext:
    """What the checks need to know about one inbound request."""

    credentials: WrapperCredentials
    authorization: Optional[str]
    path: str


def check_endpoint_url(ctx: RequestContext) -> None:
    if not ctx.credentials.gateway_url:
        raise WrapperError(ErrorCode.NO_ENDPOINT_URL_IN_ENV)


def check_dummy_key_configured(ctx: RequestContext) -> None:
    if not ctx.credentials.dummy_key:
        raise WrapperError(ErrorCode.NO_DUMMY_KEY_IN_ENV)


def check_dummy_key(ctx: RequestContext) -> None:
    provided_key = extract_wrapper_key(ctx.authorization)
    verify_wrapper_key(provided_key, ctx.credentials.dummy_key)


def check_real_key_configured(ctx: RequestContext) -> None:
    if not ctx.credentials.real_key:
        raise WrapperError(ErrorCode.NO_REAL_KEY_IN_ENV)


def check_real_key_differs(ctx: RequestContext) -> None:
    if ctx.credentials.real_key == ctx.credentials.dummy_key:
        raise WrapperError(ErrorCode.DUMMY_KEY_EQUALS_TO_REAL_KEY)


def check_route_prefix(ctx: RequestContext) -> None:
    if not ctx.path.startswith(ROUTE_PREFIX):
        raise WrapperError(ErrorCode.UNKNOWN_URL)


VALIDATION_PIPELINE: Tuple[Callable[[RequestContext], None], ...] = (
    check_endpoint_url,
    check_dummy_key_configured,
    check_dummy_key,
    check_real_key_configured,
    check_real_key_differs,
    check_route_prefix,
)


def validate_request(ctx: RequestContext) -> None:
    """
    Run every check in order.

    Raises:
        WrapperError: From the first check that fails
    """
    for check in VALIDATION_PIPELINE:
        check(ctx)
