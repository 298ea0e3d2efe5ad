from __future__ import annotations

import asyncio
import logging
import ssl
from io import BytesIO

import aiohttp
import certifi
from PIL import Image, UnidentifiedImageError

from shared.constants import (
    HTTP_5XX_MAX,
    HTTP_5XX_MIN,
    HTTP_BACKOFF_FACTOR,
    HTTP_FORBIDDEN,
    HTTP_NOT_FOUND,
    HTTP_OK,
    HTTP_RETRIES_DEFAULT,
    HTTP_TIMEOUT_DEFAULT,
    HTTP_TOO_MANY_REQUESTS,
    HTTP_UNAUTHORIZED,
)
from shared.errors import TileFetchError

logger = logging.getLogger(__name__)


def make_http_session(headers: dict[str, str] | None = None) -> aiohttp.ClientSession:
    # SSL context with certifi's CA bundle
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context)
    return aiohttp.ClientSession(connector=connector, headers=headers)


def ensure_image_bytes(data: bytes, label: str) -> bytes:
    """Reject payloads that are not a decodable raster image."""
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        msg = f'Tile {label} is not a valid image ({len(data)} bytes)'
        raise TileFetchError(msg) from e
    return data


async def fetch_tile_bytes(
    client: aiohttp.ClientSession,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    label: str = '',
    timeout: float = HTTP_TIMEOUT_DEFAULT,
    retries: int = HTTP_RETRIES_DEFAULT,
    backoff: float = HTTP_BACKOFF_FACTOR,
) -> bytes:
    """
    Download one tile and return its raw image bytes.

    - ``label`` identifies the tile in logs and errors; the URL itself is
      never logged because it may carry the API key.
    - 401/403/404 fail immediately; 429/5xx, timeouts and connection errors
      are retried with exponential backoff.
    - Any final failure raises TileFetchError.
    """

    def _fail(msg: str, status: int | None = None) -> None:
        raise TileFetchError(msg, status=status)

    last_exc: Exception | None = None
    for attempt in range(retries):
        data: bytes | None = None
        try:
            async with client.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                sc = resp.status
                if sc == HTTP_OK:
                    data = await resp.read()
        except (TimeoutError, aiohttp.ClientError) as e:
            last_exc = e
        else:
            if data is not None:
                return ensure_image_bytes(data, label)
            if sc in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
                _fail(f'Access denied (HTTP {sc}) for tile {label}; check the API key', sc)
            if sc == HTTP_NOT_FOUND:
                _fail(f'Tile {label} not found (HTTP 404)', sc)
            if sc != HTTP_TOO_MANY_REQUESTS and not HTTP_5XX_MIN <= sc < HTTP_5XX_MAX:
                _fail(f'Unexpected HTTP {sc} for tile {label}', sc)
            last_exc = TileFetchError(f'HTTP {sc} for tile {label}', status=sc)

        if attempt + 1 < retries:
            delay = backoff**attempt
            logger.warning(
                'Tile %s attempt %d/%d failed (%s); retrying in %.1fs',
                label,
                attempt + 1,
                retries,
                last_exc,
                delay,
            )
            await asyncio.sleep(delay)

    msg = f'Failed to download tile {label} after {retries} attempts: {last_exc}'
    raise TileFetchError(msg) from last_exc
