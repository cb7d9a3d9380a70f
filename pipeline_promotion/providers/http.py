"""Request helper classifying provider responses into the error taxonomy."""

from collections.abc import Collection
from typing import Any

import aiohttp

from pipeline_promotion.errors import (
    ProviderAPIError,
    ResourceNotFoundError,
    TransportFaultError,
)


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    action: str,
    expected: Collection[int] = (200,),
    **kwargs: Any,
) -> Any:
    """Issue a request and return its decoded JSON body.

    Raises:
        ResourceNotFoundError: On 404
        TransportFaultError: On 5xx, connection errors and request timeouts
        ProviderAPIError: On any other unexpected status

    """
    try:
        async with session.request(method, url, **kwargs) as response:
            status = response.status
            if status in expected:
                if status == 204:
                    return None
                return await response.json(content_type=None)
            text = await response.text()
    except (aiohttp.ClientError, TimeoutError) as exc:
        raise TransportFaultError(f"Failed to {action}: {exc!r}", cause=exc) from exc

    message = f"Failed to {action}: {status} {text}"
    if status == 404:
        raise ResourceNotFoundError(message)
    if status >= 500:
        raise TransportFaultError(message)
    raise ProviderAPIError(message)
