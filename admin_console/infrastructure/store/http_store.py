from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from admin_console.application.exceptions import DocumentStoreError
from admin_console.application.ports.document_store import (
    DocumentStorePort,
    Filter,
    Record,
    SnapshotHandler,
    Unsubscribe,
)
from admin_console.core.config import settings


class HttpDocumentStore(DocumentStorePort):
    """
    REST document API client.

    Queries go to GET {base}/collections/{collection}/documents with one
    `where=field==<json value>` parameter per filter. Live queries poll the
    same endpoint and push a snapshot whenever the result set changes.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        poll_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = (base_url or settings.DOCUMENT_STORE_BASE_URL or "").rstrip("/")
        if not self._base_url:
            raise ValueError("DOCUMENT_STORE_BASE_URL is required for the HTTP document store")
        self._api_key = api_key or settings.DOCUMENT_STORE_API_KEY
        self._poll_seconds = poll_seconds if poll_seconds is not None else settings.DOCUMENT_STORE_POLL_SECONDS
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.DOCUMENT_STORE_TIMEOUT_SECONDS
        )
        self._polls: set[asyncio.Task[None]] = set()
        self._logger = logging.getLogger(__name__)

    async def fetch_by_date_filter(self, collection: str, date: str) -> list[Record]:
        return await self.fetch_all(collection, [Filter("date", date)])

    async def fetch_all(self, collection: str, filters: list[Filter]) -> list[Record]:
        params = [("where", f"{f.field}{f.op}{json.dumps(f.value)}") for f in filters]
        data = await self._request("GET", self._documents_url(collection), params=params)
        documents = data.get("documents", []) if isinstance(data, dict) else []
        return [doc for doc in documents if isinstance(doc, dict)]

    async def subscribe(self, collection: str, filters: list[Filter], on_update: SnapshotHandler) -> Unsubscribe:
        initial = await self.fetch_all(collection, filters)
        task = asyncio.get_running_loop().create_task(self._poll(collection, list(filters), on_update, initial))
        self._polls.add(task)
        task.add_done_callback(self._polls.discard)

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def create(self, collection: str, data: Record) -> Record:
        result = await self._request("POST", self._documents_url(collection), json=data)
        if not isinstance(result, dict) or not result.get("id"):
            raise DocumentStoreError(f"No document id returned when creating in {collection}")
        return result

    async def update(self, collection: str, doc_id: str, data: Record) -> Record:
        result = await self._request("PATCH", f"{self._documents_url(collection)}/{doc_id}", json=data)
        return result if isinstance(result, dict) else {"id": doc_id, **data}

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._request("DELETE", f"{self._documents_url(collection)}/{doc_id}")

    async def aclose(self) -> None:
        for task in list(self._polls):
            task.cancel()
        await self._client.aclose()

    def _documents_url(self, collection: str) -> str:
        return f"{self._base_url}/collections/{collection}/documents"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._logger.error(
                "Document store request failed",
                extra={"status": e.response.status_code, "url": url, "error": e.response.text[:200]},
            )
            raise DocumentStoreError(f"{method} {url} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            self._logger.error("Document store unreachable", extra={"url": url, "error": str(e)})
            raise DocumentStoreError(f"{method} {url} failed: {e}") from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise DocumentStoreError(f"{method} {url} returned invalid JSON") from e

    async def _poll(
        self,
        collection: str,
        filters: list[Filter],
        on_update: SnapshotHandler,
        initial: list[Record],
    ) -> None:
        fingerprint = _fingerprint(initial)
        self._deliver(collection, on_update, initial)
        while True:
            await asyncio.sleep(self._poll_seconds)
            try:
                records = await self.fetch_all(collection, filters)
            except DocumentStoreError as e:
                self._logger.warning("Live query poll failed", extra={"collection": collection, "error": str(e)})
                continue
            current = _fingerprint(records)
            if current != fingerprint:
                fingerprint = current
                self._deliver(collection, on_update, records)

    def _deliver(self, collection: str, on_update: SnapshotHandler, records: list[Record]) -> None:
        try:
            on_update(records)
        except Exception:
            self._logger.exception("Snapshot handler failed", extra={"collection": collection})


def _fingerprint(records: list[Record]) -> str:
    return json.dumps(records, sort_keys=True, default=str)
