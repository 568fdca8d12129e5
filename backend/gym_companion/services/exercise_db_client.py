"""
ExerciseDB catalog client: paginated listing, search, lookups by id and filter.
No retries here; the sync engine owns retry policy. Transport failures are raised
as CatalogError subclasses so callers can tell network, HTTP and payload problems apart.
"""
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from gym_companion.schemas.exercise_db import CatalogEnvelope, CatalogPage, RemoteExercise
from gym_companion.services.http_client import get_http_client

logger = logging.getLogger(__name__)

_exercise_list = TypeAdapter(list[RemoteExercise])


class CatalogError(Exception):
    """Base class for catalog fetch failures."""


class CatalogNetworkError(CatalogError):
    """No response: connection refused, DNS failure, timeout."""


class CatalogHttpError(CatalogError):
    """Catalog answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(message or f"Catalog returned HTTP {status_code}")


class CatalogDecodeError(CatalogError):
    """Body could not be decoded into catalog records."""


class ExerciseDbClient:
    """Thin async wrapper over the ExerciseDB REST API."""

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else get_http_client()

    async def fetch_page(self, limit: int, offset: int) -> CatalogPage:
        """GET /exercises?limit&offset -> one page plus whether more remain.

        The enveloped response carries meta.hasNextPage, so has_more is exact. A bare array has no
        such flag: a full page (len == limit) is taken to mean more may follow, which costs one
        extra, empty fetch when the catalog size is a multiple of limit.
        """
        if limit <= 0:
            raise ValueError("limit must be positive")
        if offset < 0:
            raise ValueError("offset must not be negative")
        data = await self._get_json("exercises", {"limit": limit, "offset": offset})
        if isinstance(data, list):
            records = self._decode_list(data)
            return CatalogPage(records=records, has_more=len(records) >= limit)
        try:
            envelope = CatalogEnvelope.model_validate(data)
        except ValidationError as e:
            raise CatalogDecodeError(f"Malformed exercises page: {e.error_count()} validation errors") from e
        if not envelope.success:
            raise CatalogDecodeError("Catalog response not successful")
        return CatalogPage(
            records=envelope.data,
            has_more=envelope.meta.has_next_page,
            total=envelope.meta.total,
        )

    async def search(self, query: str, page: int = 1, page_size: int = 50) -> list[RemoteExercise]:
        """GET /exercises/search?q&page&pageSize. Not used by bulk sync."""
        data = await self._get_json("exercises/search", {"q": query, "page": page, "pageSize": page_size})
        return self._decode_list(data)

    async def get_exercise(self, exercise_id: str) -> RemoteExercise:
        """GET /exercises/{id}."""
        data = await self._get_json(f"exercises/{exercise_id}")
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        try:
            return RemoteExercise.model_validate(data)
        except ValidationError as e:
            raise CatalogDecodeError(f"Malformed exercise {exercise_id}") from e

    async def by_body_part(self, body_part: str, page: int = 1, page_size: int = 50) -> list[RemoteExercise]:
        return await self._filtered("bodyPart", body_part, page, page_size)

    async def by_equipment(self, equipment: str, page: int = 1, page_size: int = 50) -> list[RemoteExercise]:
        return await self._filtered("equipment", equipment, page, page_size)

    async def by_target_muscle(self, target: str, page: int = 1, page_size: int = 50) -> list[RemoteExercise]:
        return await self._filtered("target", target, page, page_size)

    async def _filtered(self, field: str, value: str, page: int, page_size: int) -> list[RemoteExercise]:
        data = await self._get_json(f"exercises/{field}/{value}", {"page": page, "pageSize": page_size})
        return self._decode_list(data)

    def _decode_list(self, data: Any) -> list[RemoteExercise]:
        """Accept a bare JSON array or an envelope with a "data" array."""
        if isinstance(data, dict):
            if data.get("success") is False:
                raise CatalogDecodeError("Catalog response not successful")
            data = data.get("data")
        if not isinstance(data, list):
            raise CatalogDecodeError("Expected a list of exercises")
        try:
            return _exercise_list.validate_python(data)
        except ValidationError as e:
            raise CatalogDecodeError(f"Malformed exercise list: {e.error_count()} validation errors") from e

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            r = await self.client.get(path, params=params)
        except httpx.TransportError as e:
            # Timeouts, connect/read/write errors: nothing came back
            logger.warning("ExerciseDB GET %s failed: %s", path, e.__class__.__name__)
            raise CatalogNetworkError(f"Network error calling catalog: {e.__class__.__name__}") from e
        if r.status_code >= 300:
            body = (r.text or "")[:500]
            logger.warning("ExerciseDB GET %s -> %s body=%s", path, r.status_code, body)
            raise CatalogHttpError(r.status_code, f"Catalog returned HTTP {r.status_code}")
        try:
            return r.json()
        except ValueError as e:
            raise CatalogDecodeError(f"Catalog returned invalid JSON for {path}") from e
