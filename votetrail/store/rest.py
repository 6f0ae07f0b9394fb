# votetrail/store/rest.py
"""
PostgREST row store (Supabase REST API compatible).

Maps the row store contract onto HTTP:
- insert      -> POST   /rest/v1/{table}  (Prefer: return=representation)
- select_one  -> GET    /rest/v1/{table}?col=eq.value&limit=1
- select_many -> GET    /rest/v1/{table}?col=eq.value&order=col.desc

Requests are not retried: a failed request is logged and reported to the
caller once as StoreError.
"""

from typing import Any, Dict, List, Optional
from uuid import uuid4

import httpx

from ..db.schema import metadata
from ..logging import get_logger
from .base import DuplicateRowError, Row, RowStore, StoreError

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class RestRowStore(RowStore):
    """Row store backed by a PostgREST endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: Anon or service key, sent as apikey and bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/") + "/rest/v1"
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @staticmethod
    def _filter_params(filters: Row) -> Dict[str, Any]:
        return {column: f"eq.{value}" for column, value in filters.items()}

    def _request(self, method: str, table: str, **kwargs) -> Any:
        """Send one request and return its decoded JSON body (raises StoreError)."""
        try:
            return self._send(method, table, **kwargs)
        except StoreError as e:
            logger.error("store_request_failed", method=method, table=table, error=str(e))
            raise

    def _send(self, method: str, table: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, f"/{table}", **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {table}: {e}")

        if response.status_code == 409:
            raise DuplicateRowError(f"{table}: {response.text}")
        if response.status_code >= 400:
            raise StoreError(f"{method} {table}: HTTP {response.status_code}: {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"{method} {table}: response is not JSON: {e}")

    def _select(self, table: str, params: Dict[str, Any]) -> List[Row]:
        rows = self._request("GET", table, params=params)
        if not isinstance(rows, list):
            message = f"GET {table}: expected a JSON array"
            logger.error("store_request_failed", method="GET", table=table, error=message)
            raise StoreError(message)
        return rows

    def insert(self, table: str, row: Row) -> Row:
        values = dict(row)
        known = metadata.tables.get(table)
        if known is not None and "id" in known.c and not values.get("id"):
            values["id"] = str(uuid4())

        body = self._request(
            "POST", table, json=values, headers={"Prefer": "return=representation"}
        )
        if isinstance(body, list):
            if not body:
                message = f"POST {table}: empty representation"
                logger.error("store_request_failed", method="POST", table=table, error=message)
                raise StoreError(message)
            return body[0]
        return body

    def select_one(self, table: str, filters: Row) -> Optional[Row]:
        params = self._filter_params(filters)
        params["limit"] = "1"
        rows = self._select(table, params)
        return rows[0] if rows else None

    def select_many(
        self,
        table: str,
        filters: Row,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        params = self._filter_params(filters)
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        return self._select(table, params)

    def close(self) -> None:
        self._client.close()
