"""
PostgREST remote store.

Talks to a Supabase-style REST endpoint (``/rest/v1/<table>``) with
upsert-by-id semantics. Transport failures are retried with exponential
backoff; PostgREST error bodies are decoded into domain exceptions.
"""

import re
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import get_logger, get_settings
from src.core.exceptions import (
    ForeignKeyViolationError,
    RemoteStoreError,
    RemoteUnavailableError,
)
from src.core.interfaces.remote_store import IRemoteStore

logger = get_logger(__name__)

FOREIGN_KEY_VIOLATION = "23503"

_CONSTRAINT_RE = re.compile(r'foreign key constraint "([^"]+)"')
_KEY_COLUMN_RE = re.compile(r"Key \(([^)]+)\)=")


def parse_error(response: httpx.Response, table: str | None = None) -> RemoteStoreError:
    """Turn a PostgREST error response into a domain exception."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    pg_code = body.get("code")
    message = body.get("message") or response.text[:200] or f"HTTP {response.status_code}"
    details = body.get("details") or ""

    if pg_code == FOREIGN_KEY_VIOLATION:
        constraint_match = _CONSTRAINT_RE.search(message)
        constraint = constraint_match.group(1) if constraint_match else None
        column_match = _KEY_COLUMN_RE.search(details)
        column = column_match.group(1) if column_match else None
        if column is None and constraint:
            # "<table>_<column>_fkey" is Postgres' default constraint naming
            column = constraint.removesuffix("_fkey")
            if table and column.startswith(f"{table}_"):
                column = column[len(table) + 1 :]
        return ForeignKeyViolationError(
            message,
            constraint=constraint,
            column=column,
            table=table,
            status_code=response.status_code,
        )

    return RemoteStoreError(
        message,
        status_code=response.status_code,
        pg_code=pg_code,
        table=table,
    )


class PostgRESTRemoteStore(IRemoteStore):
    """
    HTTP client for the remote PostgREST API.

    Each request opens a short-lived ``httpx.AsyncClient``; pass
    ``transport`` to route requests elsewhere (tests use MockTransport).
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        schema_path: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        retry_multiplier: float | None = None,
        page_size: int = 1000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings().remote
        self.base_url = (base_url or settings.url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.api_key
        self.schema_path = schema_path if schema_path is not None else settings.schema_path
        self.timeout = timeout or settings.timeout
        self.max_retries = max_retries or settings.max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay
        self.retry_multiplier = retry_multiplier or settings.retry_multiplier
        self.page_size = page_size
        self._transport = transport

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}{self.schema_path}/{table}"

    def _get_retry_decorator(self) -> Any:
        """Tenacity decorator retrying transport-level failures only."""
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * (self.retry_multiplier**3),
            ),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "remote_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        retry_transport: bool = True,
    ) -> httpx.Response:
        """Send one request; raises RemoteUnavailableError / RemoteStoreError."""

        async def _send() -> httpx.Response:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                return await client.request(
                    method,
                    self._url(table),
                    params=params,
                    json=json,
                    headers={**self._headers, **(headers or {})},
                )

        operation: Callable[[], Awaitable[httpx.Response]] = _send
        if retry_transport:
            operation = self._get_retry_decorator()(_send)

        try:
            response = await operation()
        except httpx.TransportError as e:
            raise RemoteUnavailableError(str(e) or e.__class__.__name__) from e

        if response.status_code >= 400:
            error = parse_error(response, table)
            logger.warning(
                "remote_request_rejected",
                method=method,
                table=table,
                status=response.status_code,
                pg_code=error.pg_code,
                error=error.message,
            )
            raise error

        return response

    @staticmethod
    def _first_row(response: httpx.Response, fallback: dict[str, Any]) -> dict[str, Any]:
        if not response.content:
            return fallback
        data = response.json()
        if isinstance(data, list):
            return data[0] if data else fallback
        return data if isinstance(data, dict) else fallback

    async def upsert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert or merge on ``id``."""
        response = await self._request(
            "POST",
            table,
            params={"on_conflict": "id"},
            json=record,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return self._first_row(response, record)

    async def delete(self, table: str, record_id: str) -> None:
        await self._request("DELETE", table, params={"id": f"eq.{record_id}"})

    async def fetch_all(self, table: str) -> list[dict[str, Any]]:
        """Fetch every row, paging past the server's row cap."""
        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            response = await self._request(
                "GET",
                table,
                params={
                    "select": "*",
                    "order": "id",
                    "limit": str(self.page_size),
                    "offset": str(offset),
                },
            )
            page = response.json()
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            offset += self.page_size

    async def find_item_by_sku(self, sku: str) -> dict[str, Any] | None:
        response = await self._request(
            "GET",
            "inventory_items",
            params={"select": "*", "sku": f"eq.{sku}", "limit": "1"},
        )
        rows = response.json()
        return rows[0] if rows else None

    async def update(self, table: str, record_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        response = await self._request(
            "PATCH",
            table,
            params={"id": f"eq.{record_id}"},
            json=changes,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json() if response.content else []
        if not rows:
            raise RemoteStoreError(f"no {table} row with id {record_id}", status_code=404, table=table)
        return rows[0]

    async def ping(self) -> bool:
        """True when the remote answers a minimal query."""
        try:
            await self._request(
                "GET",
                "inventory_items",
                params={"select": "id", "limit": "1"},
                retry_transport=False,
            )
            return True
        except RemoteStoreError as e:
            logger.debug("remote_ping_failed", error=e.message)
            return False
