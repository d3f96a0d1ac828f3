"""Document storage backends keyed by collection and document id."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import requests

RANKINGS_COLLECTION = "rankings"
ENDRESULT_COLLECTION = "endresult"
USER_COLLECTION = "user"
LOCK_COLLECTION = "lock"

ENDRESULT_ID = "endresult_id"
LOCK_ID = "lock_id"

FIRESTORE_URL = "https://firestore.googleapis.com/v1"


class StoreError(Exception):
    """Raised when the backing store fails or returns unusable data."""


class DocumentStore(ABC):
    """A store of JSON-like documents grouped in collections."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return the document, or None if it does not exist."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Create or replace the document."""

    @abstractmethod
    def list_ids(self, collection: str) -> list[str]:
        """Return the ids of all documents in the collection."""


class MemoryStore(DocumentStore):
    """An in-process store."""

    def __init__(self, documents: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        for collection, docs in (documents or {}).items():
            for doc_id, data in docs.items():
                self.set(collection, doc_id, data)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        return copy.deepcopy(self._collections.get(collection, {}).get(doc_id))

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(dict(data))

    def list_ids(self, collection: str) -> list[str]:
        return sorted(self._collections.get(collection, {}))


def _encode(value: Any) -> dict[str, Any]:
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": {str(k): _encode(v) for k, v in value.items()}}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [_encode(item) for item in value]}}
    raise StoreError(f"cannot store value of type {type(value).__name__}")


def _decode(value: Mapping[str, Any]) -> Any:
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "arrayValue" in value:
        return [_decode(item) for item in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return _decode_fields(value["mapValue"].get("fields", {}))
    raise StoreError(f"unsupported Firestore value {sorted(value)}")


def _decode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {name: _decode(value) for name, value in fields.items()}


class FirestoreStore(DocumentStore):
    """A store backed by the Firestore REST API."""

    def __init__(
        self,
        project_id: str,
        *,
        database: str = "(default)",
        access_token: str | None = None,
        base_url: str = FIRESTORE_URL,
        session: Any = None,
        timeout: float = 10.0,
        page_size: int = 300,
    ):
        self._root = f"{base_url.rstrip('/')}/projects/{project_id}/databases/{database}/documents"
        self._session = session if session is not None else requests.Session()
        self._headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        self._timeout = timeout
        self._page_size = page_size

    def _call(self, method: str, *parts: str, missing_ok: bool = False, **kwargs: Any) -> Any:
        url = "/".join([self._root, *(quote(part, safe="") for part in parts)])
        try:
            response = getattr(self._session, method)(
                url, headers=self._headers, timeout=self._timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise StoreError(f"Firestore request failed: {exc}") from exc
        if response.status_code >= 400 and not (missing_ok and response.status_code == 404):
            raise StoreError(f"Firestore request failed with status {response.status_code}")
        return response

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        response = self._call("get", collection, doc_id, missing_ok=True)
        if response.status_code == 404:
            return None
        return _decode_fields(response.json().get("fields", {}))

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        body = {"fields": {str(k): _encode(v) for k, v in data.items()}}
        self._call("patch", collection, doc_id, json=body)

    def list_ids(self, collection: str) -> list[str]:
        ids: list[str] = []
        params: dict[str, Any] = {"pageSize": self._page_size}
        while True:
            payload = self._call("get", collection, params=dict(params)).json()
            ids.extend(doc["name"].rsplit("/", 1)[-1] for doc in payload.get("documents", []))
            if not payload.get("nextPageToken"):
                return ids
            params["pageToken"] = payload["nextPageToken"]