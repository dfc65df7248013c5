"""Postman API client.

API docs: https://learning.postman.com/docs/developer/postman-api/intro-api/
Authenticated with a static API key sent as the ``X-Api-Key`` header.

Every method opens a fresh connection, validates its required inputs before
touching the network, and returns the decoded response body unmodified.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Optional

import httpx

from ..errors import RemoteError, ValidationError
from ..models import EnvironmentVariable, RequestSpec

logger = logging.getLogger(__name__)

API_BASE = "https://api.getpostman.com"
COLLECTION_SCHEMA = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"
DEFAULT_TIMEOUT = 30.0


def build_collection_document(name: str, description: Optional[str] = None) -> dict:
    """Minimal collection document with an empty item list."""
    return {
        "info": {
            "name": name,
            "description": description or "",
            "schema": COLLECTION_SCHEMA,
        },
        "item": [],
    }


def _normalize_headers(headers: Any) -> list[dict]:
    """Accept a header mapping or a list of {key, value} entries."""
    if not headers:
        return []
    if isinstance(headers, dict):
        return [{"key": str(k), "value": str(v)} for k, v in headers.items()]
    if isinstance(headers, list) and all(isinstance(h, dict) and "key" in h for h in headers):
        return [{"key": h["key"], "value": h.get("value", "")} for h in headers]
    raise ValidationError("Request headers must be a mapping or a list of key/value pairs")


def _build_body(body: Any) -> dict:
    if isinstance(body, str):
        return {"mode": "raw", "raw": body}
    return {
        "mode": "raw",
        "raw": json.dumps(body, indent=2),
        "options": {"raw": {"language": "json"}},
    }


def build_request_item(request: RequestSpec) -> dict:
    """Convert a RequestSpec into a collection item entry."""
    entry: dict[str, Any] = {
        "method": request.method.upper(),
        "header": _normalize_headers(request.headers),
        "url": request.url,
    }
    if request.description:
        entry["description"] = request.description
    if request.body is not None:
        entry["body"] = _build_body(request.body)

    item: dict[str, Any] = {"name": request.name, "request": entry}
    if request.tests:
        item["event"] = [
            {
                "listen": "test",
                "script": {"type": "text/javascript", "exec": request.tests.split("\n")},
            }
        ]
    return item


def append_request_item(collection: dict, item: dict) -> dict:
    """Return a copy of ``collection`` with ``item`` appended at the top level.

    The input document is left untouched; every other field is preserved.
    """
    updated = copy.deepcopy(collection)
    items = updated.setdefault("item", [])
    if not isinstance(items, list):
        raise ValueError("Collection item field must be a list")
    items.append(item)
    return updated


def build_environment_document(name: str, variables: Optional[list]) -> dict:
    values = []
    for var in variables or []:
        parsed = var if isinstance(var, EnvironmentVariable) else EnvironmentVariable.model_validate(var)
        values.append(parsed.model_dump(include={"key", "value", "enabled", "type"}))
    return {"name": name, "values": values}


class PostmanClient:
    """Thin async facade over the Postman collections and environments API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("Postman API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def headers(self) -> dict[str, str]:
        return {"X-Api-Key": self.api_key, "Content-Type": "application/json"}

    async def _request(
        self,
        method: str,
        path: str,
        failure: str,
        payload: Optional[dict] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        ) as client:
            response = await client.request(method, url, headers=self.headers, json=payload)
            if not response.is_success:
                logger.warning("%s %s returned %d", method, url, response.status_code)
                raise RemoteError(failure, status_code=response.status_code)
            return response.json()

    # ─── Collections ─────────────────────────────────────────────────────────

    async def get_collections(self) -> Any:
        """List all collections visible to the API key."""
        return await self._request("GET", "/collections", "Failed to retrieve collections")

    async def get_collection(self, collection_id: str) -> Any:
        if not collection_id:
            raise ValidationError("Collection ID is required")
        return await self._request(
            "GET",
            f"/collections/{collection_id}",
            f"Failed to retrieve collection with ID {collection_id}",
        )

    async def create_collection(self, name: str, description: Optional[str] = None) -> Any:
        """Create an empty collection.

        Args:
            name: Collection name. Required.
            description: Optional description, sent as "" when omitted.
        """
        if not name:
            raise ValidationError("Collection name is required")
        payload = {"collection": build_collection_document(name, description)}
        return await self._request("POST", "/collections", "Failed to create collection", payload)

    async def update_collection(self, collection_id: str, collection: dict) -> Any:
        """Replace the full collection document."""
        if not collection_id:
            raise ValidationError("Collection ID is required")
        return await self._request(
            "PUT",
            f"/collections/{collection_id}",
            "Failed to update collection",
            {"collection": collection},
        )

    async def add_request_to_collection(
        self,
        collection_id: str,
        request: RequestSpec,
        folder_path: Optional[str] = None,
    ) -> Any:
        """Append a request to a collection via a full read-modify-write cycle.

        The remote API has no partial update for items, so the current document
        is fetched, modified locally, and written back whole. The cycle is not
        atomic: concurrent writers to the same collection race and the last
        write wins.

        ``folder_path`` is accepted but the request is always appended at the
        top level of the collection.
        """
        if not collection_id:
            raise ValidationError("Collection ID is required")
        if not request.name or not request.method or not request.url:
            raise ValidationError("Request name, method, and URL are required")

        item = build_request_item(request)

        current = await self.get_collection(collection_id)
        document = current.get("collection") if isinstance(current, dict) else None
        if not isinstance(document, dict) or not isinstance(document.get("item", []), list):
            logger.warning("Collection %s response has no usable collection document", collection_id)
            raise RemoteError(f"Failed to retrieve collection with ID {collection_id}")

        if folder_path:
            logger.info(
                "Folder path %r ignored; appending %r to top level of collection %s",
                folder_path,
                request.name,
                collection_id,
            )

        updated = append_request_item(document, item)
        return await self.update_collection(collection_id, updated)

    # ─── Environments ────────────────────────────────────────────────────────

    async def get_environments(self) -> Any:
        """List all environments visible to the API key."""
        return await self._request("GET", "/environments", "Failed to retrieve environments")

    async def get_environment(self, environment_id: str) -> Any:
        if not environment_id:
            raise ValidationError("Environment ID is required")
        return await self._request(
            "GET",
            f"/environments/{environment_id}",
            f"Failed to retrieve environment with ID {environment_id}",
        )

    async def create_environment(self, name: str, variables: Optional[list] = None) -> Any:
        """Create an environment from key/value pairs.

        Each variable defaults to ``type="default"`` and ``enabled=True``.
        """
        if not name:
            raise ValidationError("Environment name is required")
        payload = {"environment": build_environment_document(name, variables)}
        return await self._request("POST", "/environments", "Failed to create environment", payload)

    # ─── Runs ────────────────────────────────────────────────────────────────

    async def run_collection(self, collection_id: str, environment_id: Optional[str] = None) -> Any:
        if not collection_id:
            raise ValidationError("Collection ID is required")
        payload: dict[str, Any] = {"collection": collection_id}
        if environment_id:
            payload["environment"] = environment_id
        return await self._request("POST", "/collections/run", "Failed to run collection", payload)
