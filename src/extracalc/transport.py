"""HTTP transport for talking to an EtherCalc server.

HttpTransport owns the shared httpx.AsyncClient. Its `request` method raises
httpx errors; turning those into returned values is the client's job.
"""

from __future__ import annotations

import ssl
import urllib.parse
from collections.abc import AsyncIterator, Mapping
from typing import TYPE_CHECKING, Any

import certifi
import httpx
from loguru import logger

if TYPE_CHECKING:
    from anyio import AsyncFile

    from extracalc.config import ClientConfig
    from extracalc.results import Body

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
CHUNK_SIZE = 64 * 1024

_TEXT_CONTENT_TYPES = {
    FORM_CONTENT_TYPE,
    "application/javascript",
    "application/xml",
}


class HttpTransport:
    """Shared connection to one EtherCalc server.

    Built once from a ClientConfig. Safe for concurrent use by many
    in-flight requests.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Server location and default timeout
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self._config = config
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            verify=ssl_context,
            follow_redirects=True,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        content: bytes | AsyncIterator[bytes] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> httpx.Response:
        """Send one request and return the 2xx response.

        Raises:
            httpx.HTTPStatusError: The server answered with a non-2xx status
            httpx.RequestError: No response was received
            httpx.InvalidURL: The path cannot form a valid URL
        """
        timeout = self._config.timeout if timeout_ms is None else timeout_ms / 1000
        logger.debug("{} {}{}", method, self._config.base_url, path)
        response = await self._client.request(
            method,
            path,
            content=content,
            headers=headers,
            timeout=timeout,
        )
        response.raise_for_status()
        return response

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def encode_form(fields: Mapping[str, Any]) -> bytes:
    """URL-encode form fields, keeping their order.

    None values are left out. A list or tuple value becomes indexed fields
    (``command[0]=...&command[1]=...``) in sequence order.
    """
    pairs: list[tuple[str, Any]] = []
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((f"{key}[{i}]", item) for i, item in enumerate(value))
        else:
            pairs.append((key, value))
    return urllib.parse.urlencode(pairs, quote_via=urllib.parse.quote).encode("ascii")


async def iter_file(
    file: AsyncFile[bytes], chunk_size: int = CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Yield an open file's contents in chunks for a streamed request body."""
    while chunk := await file.read(chunk_size):
        yield chunk


def decode_body(response: httpx.Response) -> Body:
    """Decode a response body by its Content-Type.

    JSON types are parsed, text types come back as str and anything else
    (e.g. an xlsx export) as bytes.
    """
    content_type = response.headers.get("content-type", "")
    media_type = content_type.split(";")[0].strip().lower()

    if media_type == "application/json" or media_type.endswith("+json"):
        try:
            return response.json()
        except ValueError:
            return response.text
    if not media_type or media_type.startswith("text/") or media_type in _TEXT_CONTENT_TYPES:
        return response.text
    return response.content
