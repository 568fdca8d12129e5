"""
Process-wide httpx.AsyncClient bound to the ExerciseDB catalog (base URL, RapidAPI headers).
Created in the app lifespan and closed on shutdown; ExerciseDbClient borrows it unless given its own.
"""
from __future__ import annotations

import logging

import httpx

from gym_companion.config import settings

logger = logging.getLogger(__name__)

_http_client: httpx.AsyncClient | None = None


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug("Catalog %s %s -> %s", request.method, request.url, response.status_code)


def build_catalog_http_client(
    base_url: str,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Client whose relative paths ("exercises", "exercises/search") resolve under base_url."""
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/") + "/",
        headers=headers or {},
        timeout=httpx.Timeout(timeout),
        transport=transport,
        event_hooks={"response": [_log_response]},
    )


def get_http_client() -> httpx.AsyncClient:
    if _http_client is None:
        raise RuntimeError("Catalog HTTP client not initialized; app lifespan must call init_http_client().")
    return _http_client


def init_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Create the shared catalog client from settings (idempotent)."""
    global _http_client
    if _http_client is None:
        _http_client = build_catalog_http_client(
            settings.exercise_db_base_url,
            headers=settings.rapidapi_headers,
            timeout=timeout if timeout is not None else settings.http_timeout_seconds,
        )
        logger.info("Catalog HTTP client ready for %s", _http_client.base_url)
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
