"""
Supabase (PostgREST) table backend over httpx. Pure REST, no SDK dependency.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import httpx

from errors import StoreError
from storage.base import Row, check_columns

logger = logging.getLogger(__name__)

_TIMEOUT = 10.0


def _eq(value: Any) -> str:
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def _error_message(resp: httpx.Response) -> str:
    """PostgREST puts the reason in `message`; fall back to the raw body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class SupabaseBackend:
    """TableBackend over the Supabase REST endpoint (`/rest/v1/<table>`)."""

    def __init__(
        self,
        url: str,
        service_role_key: str,
        timeout: float = _TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = url.rstrip("/") + "/rest/v1"
        self._client = httpx.Client(
            base_url=self._base_url,
            headers={
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def _request(
        self,
        method: str,
        table: str,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = {"Prefer": prefer} if prefer else None
        try:
            resp = self._client.request(method, f"/{table}", params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise StoreError(str(e)) from e
        if resp.status_code >= 400:
            raise StoreError(_error_message(resp))
        return resp

    def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        filters = dict(filters or {})
        check_columns(table, list(columns or ()) + list(filters) + ([order_by] if order_by else []))
        params = {"select": ",".join(columns) if columns else "*"}
        params.update({col: _eq(val) for col, val in filters.items()})
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        data = self._request("GET", table, params=params).json()
        return list(data or [])

    def upsert(self, table: str, rows: Sequence[Mapping[str, Any]], on_conflict: Sequence[str]) -> None:
        if not rows:
            return
        check_columns(table, list(rows[0]) + list(on_conflict))
        self._request(
            "POST",
            table,
            params={"on_conflict": ",".join(on_conflict)},
            json=[dict(r) for r in rows],
            prefer="resolution=merge-duplicates,return=minimal",
        )
        logger.debug("Upserted %d row(s) into %s", len(rows), table)

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        if not rows:
            return
        check_columns(table, list(rows[0]))
        self._request("POST", table, json=[dict(r) for r in rows], prefer="return=minimal")
        logger.debug("Inserted %d row(s) into %s", len(rows), table)

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")
        check_columns(table, list(filters))
        self._request(
            "DELETE",
            table,
            params={col: _eq(val) for col, val in filters.items()},
            prefer="return=minimal",
        )

    def close(self) -> None:
        self._client.close()
