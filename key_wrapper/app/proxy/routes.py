"""
Proxy Routes - Upstream Request Forwarding
==========================================

A single catch-all route that validates the request and forwards it to the
configured AI gateway.

Security Model:
---------------
1. Clients present the dummy wrapper key in the Authorization header
2. The wrapper validates configuration and the dummy key (see validation.py)
3. The Authorization header is replaced with the real OpenAI key
4. Everything else (method, headers, body) is forwarded unchanged
5. The upstream response (status, headers, raw body) is relayed unchanged

Endpoints:
----------
- ANY /v1/{path}: Forwarded to AI_GATEWAY_ENDPOINT_URL + /{path}
- ANY other path: Rejected with unknown_url
"""

import logging
from typing import List, Optional, Tuple

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ..auth import decode_header_value
from ..config import Settings, WrapperCredentials, get_settings
from ..models import ErrorCode, WrapperError
from .validation import ROUTE_PREFIX, RequestContext, validate_request

logger = logging.getLogger(__name__)

proxy_router = APIRouter()

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

# Set by httpx from the upstream URL / replaced with the real key
DROPPED_REQUEST_HEADERS = {"host", "authorization"}

# Connection framing is re-done by the ASGI server
DROPPED_RESPONSE_HEADERS = {b"connection", b"keep-alive", b"transfer-encoding"}

# No longer describe a body httpx has already decoded
DECODED_BODY_HEADERS = {b"content-encoding", b"content-length"}


# ============================================================================
# Upstream Request Construction
# ============================================================================

def build_upstream_url(gateway_url: str, path: str, query: str = "") -> str:
    """
    Rewrite an inbound path onto the gateway base URL.

    Example:
        >>> build_upstream_url("https://gw.example/openai", "/v1/chat/completions")
        'https://gw.example/openai/chat/completions'
    """
    url = gateway_url + path[len(ROUTE_PREFIX):]
    if query:
        url = f"{url}?{query}"
    return url


def build_upstream_headers(
    original_headers: List[Tuple[str, str]],
    real_key: str,
) -> List[Tuple[str, str]]:
    """
    Build headers for the upstream request.

    Keeps every inbound header (duplicates included) except Host and
    Authorization, then adds the real key as a bearer token.
    """
    headers = [
        (key, value) for key, value in original_headers
        if key.lower() not in DROPPED_REQUEST_HEADERS
    ]
    headers.append(("Authorization", f"Bearer {real_key}"))
    return headers


def inbound_path(request: Request) -> str:
    """
    Path as the client sent it, percent-encoding intact.

    ``raw_path`` is optional in ASGI; servers that omit it fall back to the
    decoded path.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1")
    return request.url.path


def has_request_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers


def get_upstream_client(request: Request) -> httpx.AsyncClient:
    """
    Get the shared upstream HTTP client from app state.

    Raises:
        WrapperError: If the client was not initialised by the lifespan
    """
    app_state = getattr(request.app.state, "app_state", None)
    client = getattr(app_state, "http_client", None)
    if client is None:
        logger.error("Upstream HTTP client not initialized")
        raise WrapperError(ErrorCode.FORWARDING_FAILED)
    return client


# ============================================================================
# Forwarding
# ============================================================================

async def forward_request(
    request: Request,
    client: httpx.AsyncClient,
    credentials: WrapperCredentials,
    timeout: Optional[float] = None,
) -> StreamingResponse:
    """
    Send one request upstream and relay the response.

    No retries are attempted.

    Args:
        request: Validated inbound request
        client: Shared upstream HTTP client
        credentials: Configuration bundle for this request
        timeout: Upstream timeout in seconds, None to disable

    Returns:
        StreamingResponse carrying the upstream status, headers and raw body

    Raises:
        WrapperError: FORWARDING_FAILED on any transport error
    """
    url = build_upstream_url(credentials.gateway_url, inbound_path(request), request.url.query)
    headers = build_upstream_headers(request.headers.items(), credentials.real_key)
    content = request.stream() if has_request_body(request) else None

    try:
        upstream_request = client.build_request(
            request.method,
            url,
            headers=headers,
            content=content,
            timeout=timeout,
        )
        upstream_response = await client.send(upstream_request, stream=True)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(
            f"Upstream forwarding failed: {type(e).__name__}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "exception_type": type(e).__name__,
            },
        )
        raise WrapperError(ErrorCode.FORWARDING_FAILED) from e

    logger.info(
        "Forwarded request to gateway",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": upstream_response.status_code,
        },
    )

    dropped_headers = DROPPED_RESPONSE_HEADERS
    if upstream_response.is_stream_consumed:
        # Transports may hand back an already-read (decoded) response
        body = iter([upstream_response.content])
        dropped_headers = DROPPED_RESPONSE_HEADERS | DECODED_BODY_HEADERS
    else:
        body = upstream_response.aiter_raw()

    response = StreamingResponse(
        body,
        status_code=upstream_response.status_code,
        background=BackgroundTask(upstream_response.aclose),
    )
    response.raw_headers = [
        (key.lower(), value) for key, value in upstream_response.headers.raw
        if key.lower() not in dropped_headers
    ]
    return response


# ============================================================================
# Proxy Endpoint
# ============================================================================

@proxy_router.api_route("/{path:path}", methods=PROXY_METHODS)
async def proxy(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """
    Validate and forward any inbound request.

    Flow:
    1. Snapshot the configuration for this request
    2. Run the validation pipeline (config, dummy key, real key, path)
    3. Forward upstream with the real key and relay the response
    """
    credentials = settings.credentials

    validate_request(
        RequestContext(
            credentials=credentials,
            authorization=decode_header_value(request.headers.get("Authorization")),
            path=inbound_path(request),
        )
    )

    client = get_upstream_client(request)
    return await forward_request(
        request,
        client,
        credentials,
        timeout=settings.upstream_timeout,
    )
