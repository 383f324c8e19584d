"""PostgREST-compatible HTTP gateway (e.g. a hosted Supabase project)."""

import logging
import os
from typing import Any, Optional

import requests

from unitreader.core.errors import RemoteFailure
from unitreader.storage.base import Gateway


logger = logging.getLogger(__name__)


class RestGateway(Gateway):
    """Talks to the tables through the PostgREST ``/rest/v1`` API."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.url = (url or os.environ.get("UNITREADER_REST_URL") or "").rstrip("/")
        self.api_key = api_key or os.environ.get("UNITREADER_REST_KEY")
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_available(self) -> bool:
        """Check if the endpoint is configured."""
        return bool(self.url and self.api_key)

    def _headers(self, prefer: Optional[str] = None) -> dict:
        headers = {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> requests.Response:
        if not self.is_available():
            raise RemoteFailure("REST store URL or API key not configured")

        try:
            response = self.session.request(
                method,
                f"{self.url}/rest/v1/{table}",
                params=params,
                json=json,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, table, e)
            raise RemoteFailure(f"Could not reach the store: {e}") from e

        if not response.ok:
            logger.warning("%s %s rejected (%s): %s", method, table, response.status_code, response.text)
            raise RemoteFailure(f"Store rejected {method} {table}: {response.status_code} {response.text}")
        return response

    def _json(self, response: requests.Response, method: str, table: str) -> Any:
        """Decode a JSON body; anything else (e.g. a proxy page) is a failure."""
        try:
            return response.json()
        except ValueError as e:
            logger.warning("%s %s returned a non-JSON body: %s", method, table, e)
            raise RemoteFailure(f"Store sent an unreadable answer to {method} {table}") from e

    def select(self, table: str) -> list[dict]:
        response = self._request(
            "GET", table, params={"select": "*", "order": "created_at.asc"}
        )
        return self._json(response, "GET", table)

    def insert(self, table: str, record: dict) -> dict:
        response = self._request(
            "POST", table, json=record, prefer="return=representation"
        )
        rows = self._json(response, "POST", table)
        # PostgREST answers with the inserted rows as a list
        if isinstance(rows, list) and rows:
            return rows[0]
        return record

    def update(self, table: str, id: str, changes: dict) -> None:
        if not changes:
            return
        self._request("PATCH", table, params={"id": f"eq.{id}"}, json=changes)

    def delete(self, table: str, id: str) -> None:
        self.delete_where(table, "id", id)

    def delete_where(self, table: str, column: str, value: Any) -> None:
        self._request("DELETE", table, params={column: f"eq.{value}"})

    def upsert(self, table: str, records: list[dict]) -> None:
        if not records:
            return
        self._request(
            "POST", table, json=records, prefer="resolution=merge-duplicates"
        )
