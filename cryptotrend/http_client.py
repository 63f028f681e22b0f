"""Shared httpx client for outbound market, price and news requests.

Created lazily on first use and closed in the app lifespan.
"""

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from cryptotrend.config import settings
from cryptotrend.exceptions import ExternalServiceError, RateLimitedError

logger = structlog.get_logger()

_shared_client: httpx.AsyncClient | None = None

_RETRY_ATTEMPTS = 3


def get_http_client() -> httpx.AsyncClient:
    global _shared_client
    if _shared_client is None or _shared_client.is_closed:
        _shared_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds, connect=5.0),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            headers={"Accept": "application/json", "User-Agent": "cryptotrend/0.1"},
        )
    return _shared_client


async def close_http_client() -> None:
    global _shared_client
    if _shared_client is not None and not _shared_client.is_closed:
        await _shared_client.aclose()
        logger.info("http_client_closed")
    _shared_client = None


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


async def fetch_json(
    client: httpx.AsyncClient,
    service: str,
    url: str,
    params: dict | None = None,
    attempts: int = _RETRY_ATTEMPTS,
) -> dict | list:
    """GET ``url`` and decode JSON, retrying transport errors and 5xx responses.

    A 429 raises RateLimitedError without retrying; any other failure raises
    ExternalServiceError carrying the upstream status code.
    """
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.6, min=0.6, max=5),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
    except httpx.HTTPStatusError as exc:
        status_code = exc.response.status_code
        logger.warning("external_request_failed", service=service, url=url, status_code=status_code)
        if status_code == 429:
            raise RateLimitedError(service) from exc
        raise ExternalServiceError(service, f"HTTP {status_code}", status_code=status_code) from exc
    except (httpx.TransportError, ValueError) as exc:
        logger.warning("external_request_failed", service=service, url=url, error=str(exc))
        raise ExternalServiceError(service, str(exc) or type(exc).__name__) from exc
    raise ExternalServiceError(service, "no response")
