"""
Dummy Key Authentication
========================

Clients authenticate with the substitute ("dummy") wrapper key instead of the
real OpenAI key. Both ``Authorization: Bearer <key>`` and a bare
``Authorization: <key>`` are accepted: the key is whatever follows the last
whitespace in the header value.
"""

import hmac
import logging
import re
from typing import Optional

from ..models import ErrorCode, WrapperError

logger = logging.getLogger(__name__)


def decode_header_value(value: Optional[str]) -> Optional[str]:
    """
    Re-read a header value as UTF-8.

    Starlette decodes header bytes as latin-1, so a UTF-8 key arrives as
    mojibake. Values that are not valid UTF-8 are returned unchanged.
    """
    if not value:
        return value
    try:
        return value.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return value


def extract_wrapper_key(authorization: Optional[str]) -> str:
    """
    Extract the wrapper key from an Authorization header value.

    Args:
        authorization: Authorization header value

    Returns:
        Text after the last whitespace (the whole value if it has none)

    Raises:
        WrapperError: If the header is missing or empty
    """
    if not authorization:
        raise WrapperError(ErrorCode.NO_DUMMY_KEY_IN_AUTHORIZATION)

    # "Bearer abc" -> "abc", "abc" -> "abc", "Bearer " -> ""
    return re.split(r"\s", authorization)[-1]


def verify_wrapper_key(provided_key: str, dummy_key: str) -> None:
    """
    Compare the presented key with the configured dummy key.

    Raises:
        WrapperError: If the keys differ
    """
    if not hmac.compare_digest(provided_key.encode("utf-8"), dummy_key.encode("utf-8")):
        logger.warning("Rejected request with invalid wrapper key")
        raise WrapperError(ErrorCode.INVALID_DUMMY_KEY)
