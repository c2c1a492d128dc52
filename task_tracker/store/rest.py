"""Store backend for a hosted PostgREST endpoint (``/rest/v1``).

Query shape follows PostgREST conventions:
  GET    /<table>?select=cols&col=eq.value&order=col.asc   filtered read
  POST   /<table>      (Prefer: return=representation)     insert one row
  PATCH  /<table>?id=eq.value (Prefer: return=minimal)     update by filter

The service key is sent on every request; whoever constructs this client holds
the elevated credential, so only the app factory and CLI should build one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

import httpx

from .base import Filter, StoreError, check_filters

logger = logging.getLogger(__name__)

OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


def _encode_value(value: Any) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.astimezone()
        text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
        return text.replace("+00:00", "Z")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _query_params(
    columns: str,
    filters: Sequence[Filter],
    order: tuple[str, bool] | None = None,
) -> list[tuple[str, str]]:
    check_filters(filters)
    params = [("select", columns)]
    for column, op, value in filters:
        params.append((column, f"{op}.{_encode_value(value)}"))
    if order is not None:
        column, ascending = order
        params.append(("order", f"{column}.{'asc' if ascending else 'desc'}"))
    return params


def _error_from_response(resp: httpx.Response) -> StoreError:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return StoreError(str(body["message"]), code=body.get("code"))
    text = resp.text.strip() or resp.reason_phrase
    return StoreError(f"{resp.status_code}: {text}", code=str(resp.status_code))


def _json_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise StoreError(f"Store returned a non-JSON body ({resp.status_code})") from exc


class RestStoreClient:
    """Async PostgREST client with the service credential baked into headers."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url or not service_key:
            raise RuntimeError("REST store requires both a URL and a service key")
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Store request %s %s failed: %s", method, path, exc)
            raise StoreError(str(exc) or exc.__class__.__name__) from exc
        if resp.status_code >= 400:
            raise _error_from_response(resp)
        return resp

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: tuple[str, bool] | None = None,
    ) -> list[dict[str, Any]]:
        resp = await self._request("GET", f"/{table}", params=_query_params(columns, filters, order))
        data = _json_body(resp)
        if not isinstance(data, list):
            raise StoreError(f"Expected a list of rows from {table}")
        return data

    async def select_one(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
    ) -> dict[str, Any]:
        resp = await self._request(
            "GET",
            f"/{table}",
            params=_query_params(columns, filters),
            headers={"Accept": OBJECT_MEDIA_TYPE},
        )
        data = _json_body(resp)
        if not isinstance(data, dict):
            raise StoreError(f"Expected a single row from {table}")
        return data

    async def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        resp = await self._request(
            "POST",
            f"/{table}",
            json=values,
            headers={"Accept": OBJECT_MEDIA_TYPE, "Prefer": "return=representation"},
        )
        data = _json_body(resp)
        if isinstance(data, list):
            data = data[0] if len(data) == 1 else None
        if not isinstance(data, dict):
            raise StoreError(f"Insert into {table} returned no row")
        return data

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        filters: Sequence[Filter],
    ) -> None:
        if not filters:
            raise ValueError("Refusing to update without a filter")
        params = [p for p in _query_params("*", filters) if p[0] != "select"]
        await self._request(
            "PATCH",
            f"/{table}",
            params=params,
            json=values,
            headers={"Prefer": "return=minimal"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()
