"""
Request adapter backed by httpx.
"""
import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..errors import NETWORK_ERROR, TIMEOUT, RequestError
from ..types import RequestConfig, Response

logger = logging.getLogger(__name__)

BODYLESS_METHODS = ("GET", "HEAD")


def build_url(base_url: Optional[str], url: str) -> str:
    """Join a base URL and a request path with exactly one slash."""
    if not base_url:
        return url
    path = url if url.startswith("/") else f"/{url}"
    return f"{base_url.rstrip('/')}{path}"


def build_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Drop None params and stringify the rest."""
    if not params:
        return {}
    result = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        result[key] = str(value)
    return result


def parse_body(response: httpx.Response) -> Any:
    """Parse a response body as JSON when possible, else text."""
    content_type = response.headers.get("content-type", "")
    if content_type.startswith("text/"):
        return response.text

    text = response.text
    try:
        return json.loads(text)
    except ValueError:
        return text


class HttpxAdapter:
    """
    Adapter performing requests with an ``httpx.AsyncClient``.

    A client passed in is used as-is and left open on ``close``; otherwise
    the adapter owns one.

    Example:
        adapter = HttpxAdapter(httpx.AsyncClient(verify=False))
        response = await adapter.request({"url": "https://example.com/users"})
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def request(self, config: RequestConfig) -> Response:
        method = (config.get("method") or "GET").upper()
        url = build_url(config.get("base_url"), config["url"])
        headers = dict(config.get("headers") or {})
        data = config.get("data")

        content = None
        if data is not None and method not in BODYLESS_METHODS:
            content = json.dumps(data)
            if "content-type" not in {key.lower() for key in headers}:
                headers["Content-Type"] = "application/json"

        timeout_ms = config.get("timeout_ms")
        timeout = timeout_ms / 1000 if timeout_ms else httpx.USE_CLIENT_DEFAULT

        logger.debug(f"HttpxAdapter.request: {method} {url}")

        try:
            response = await self._client.request(
                method,
                url,
                params=build_params(config.get("params")),
                headers=headers,
                content=content,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise RequestError(
                "Request timeout", code=TIMEOUT, config=config, original_error=e
            ) from e
        except httpx.HTTPError as e:
            raise RequestError(
                str(e) or "Request failed",
                code=NETWORK_ERROR,
                config=config,
                original_error=e,
            ) from e

        data = parse_body(response)
        status_text = response.reason_phrase or ""

        if not response.is_success:
            raise RequestError(
                f"Request failed with status {response.status_code}",
                status=response.status_code,
                status_text=status_text,
                code=f"HTTP_{response.status_code}",
                config=config,
            )

        return Response(
            status=response.status_code,
            status_text=status_text,
            headers=dict(response.headers),
            data=data,
            raw=response,
        )

    async def close(self) -> None:
        """Close the client when this adapter created it."""
        if self._owns_client:
            await self._client.aclose()
