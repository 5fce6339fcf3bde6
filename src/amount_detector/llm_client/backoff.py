"""
HTTP calls with exponential backoff.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from .exceptions import RPCCallError

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds


async def call_with_backoff(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Sleep = asyncio.sleep,
    **request_kwargs: Any,
) -> Any:
    """
    Perform an HTTP request, retrying failed attempts with exponential backoff.

    A transport error or a non-success status fails the attempt. Between
    attempts the call waits base_delay * 2**attempt (attempt is zero-based);
    there is no wait after the last attempt.

    Args:
        client: HTTP client used for every attempt
        method: HTTP method
        url: Request URL
        max_retries: Total number of attempts
        base_delay: First wait in seconds
        sleep: Awaitable sleep (injectable for tests)
        **request_kwargs: Passed to client.request (json, params, headers, ...)

    Returns:
        The parsed JSON body of the first successful response

    Raises:
        RPCCallError: Every attempt failed, or the success body is not JSON
    """
    if max_retries < 1:
        raise ValueError("max_retries must be >= 1")

    for attempt in range(max_retries):
        last_attempt = attempt == max_retries - 1

        try:
            response = await client.request(method, url, **request_kwargs)
        except httpx.RequestError as e:
            logger.warning("Attempt %d/%d failed: %s", attempt + 1, max_retries, e)
            if last_attempt:
                raise RPCCallError(f"API call failed after {max_retries} attempts: {e}") from e
        else:
            if response.is_success:
                try:
                    return response.json()
                except ValueError as e:
                    raise RPCCallError(
                        f"API returned invalid JSON: {e}", status_code=response.status_code
                    ) from e

            # Body is read so the connection can be reused; it is not surfaced
            body = response.text
            logger.warning(
                "Attempt %d/%d failed with status %d",
                attempt + 1,
                max_retries,
                response.status_code,
            )
            logger.debug("Error body: %s", body[:500])
            if last_attempt:
                raise RPCCallError(
                    f"API call failed after {max_retries} attempts. Status: {response.status_code}",
                    status_code=response.status_code,
                )

        wait = base_delay * 2**attempt
        logger.debug("Retrying in %.1fs", wait)
        await sleep(wait)

    # Unreachable: the last attempt either returns or raises
    raise RPCCallError(f"API call failed after {max_retries} attempts")
