# magpie/offline/client.py
import logging
from typing import Any, Dict, List, Optional

import httpx

from magpie.errors import NetworkError, error_from_status
from magpie.offline.store import ChangeAction, ChangeEntry

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body)
    return str(body)


class RemoteCatalogClient:
    """Async client for the remote catalog API.

    Transport failures (refused connections, timeouts) surface as
    NetworkError; error statuses surface as the matching CatalogError.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "RemoteCatalogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(f"Network unavailable: {e}") from e

        if response.status_code >= 400:
            raise error_from_status(response.status_code, _error_message(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Records

    async def list_records(self, page: int = 1, limit: int = 100, **filters) -> Dict[str, Any]:
        params = {"page": page, "limit": limit, **{k: v for k, v in filters.items() if v is not None}}
        return await self._request("GET", "/records", params=params)

    async def fetch_all_records(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Every record visible to the caller, across all pages."""
        records: List[Dict[str, Any]] = []
        page = 1
        while True:
            result = await self.list_records(page=page, limit=limit)
            records.extend(result["data"])
            if page >= result["totalPages"]:
                return records
            page += 1

    async def get_record(self, isbn: str) -> Dict[str, Any]:
        return await self._request("GET", f"/records/{isbn}")

    async def create_record(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/records", json=data)

    async def update_record(self, isbn: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/records/{isbn}", json=data)

    async def delete_record(self, isbn: str) -> None:
        await self._request("DELETE", f"/records/{isbn}")

    async def set_favourite(self, isbn: str, is_favourite: bool) -> Dict[str, Any]:
        return await self._request("PUT", f"/records/{isbn}/favourite", json={"isFavourite": is_favourite})

    async def update_loan_status(self, isbn: str, loan_status: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/records/{isbn}/loan", json={"loanStatus": loan_status})

    async def share_record(
        self,
        isbn: str,
        identities: List[str],
        permissions: Optional[Dict[str, bool]] = None,
        message: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"identities": identities}
        if permissions is not None:
            body["permissions"] = permissions
        if message:
            body["message"] = message
        return await self._request("POST", f"/records/{isbn}/share", json=body)

    async def unshare_record(self, isbn: str, identity: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/records/{isbn}/share/{identity}")

    async def search(self, query: str) -> List[Dict[str, Any]]:
        return await self._request("GET", "/search", params={"q": query})

    # Auth

    async def login(self, id_token: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/login", json={"idToken": id_token})

    async def validate(self) -> Dict[str, Any]:
        return await self._request("POST", "/auth/validate")

    # Sync

    async def apply_change(self, change: ChangeEntry) -> Optional[Dict[str, Any]]:
        """Replay one change entry; returns the canonical record, or None for deletes."""
        if change.action == ChangeAction.CREATE:
            return await self.create_record(change.data)
        if change.action == ChangeAction.UPDATE:
            return await self.update_record(change.isbn, change.data)
        await self.delete_record(change.isbn)
        return None
