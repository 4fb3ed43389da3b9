from __future__ import annotations

import logging
import os
from typing import Any

import requests

from ..models.catalog import CatalogEntry, Catalogs
from ..models.enums import RowStatus
from ..models.payload import ImportRequest
from ..models.processing_result import ImportBatchResult, RowOutcome
from .base import SubmissionError

"""HTTP import executor for the finance backend.

``POST {base_url}/import`` with the camelCase batch body. The backend answers
with aggregate counts, the import history id, and one status entry per
submitted row; responses may or may not be wrapped in a ``data`` envelope.
The same client reads the catalogs (accounts, categories, groups) and the
import history.
"""

__all__ = [
    "TOKEN_ENV",
    "HttpImportExecutor",
]

logger = logging.getLogger(__name__)

TOKEN_ENV = "IMPORT_API_TOKEN"
DEFAULT_TIMEOUT = 30.0


def _unwrap(body: Any) -> Any:
    """Strip the optional ``{"data": ...}`` envelope (also nested pagination)."""
    while isinstance(body, dict) and "data" in body:
        body = body["data"]
    return body


class HttpImportExecutor:
    """Submit batches (and read catalogs) over the backend REST API."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required for the http executor")
        self.base_url = base_url.rstrip("/")
        self.token = token if token is not None else os.getenv(TOKEN_ENV)
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as e:
            detail = ""
            try:
                detail = e.response.json().get("message", "")  # type: ignore[union-attr]
            except (ValueError, AttributeError):
                pass
            status = e.response.status_code if e.response is not None else "?"
            raise SubmissionError(f"{method} {path} failed with HTTP {status}{': ' + detail if detail else ''}") from e
        except requests.RequestException as e:
            raise SubmissionError(f"{method} {path} failed: {e}") from e
        except ValueError as e:  # body was not JSON
            raise SubmissionError(f"{method} {path} returned invalid JSON: {e}") from e

    # -- import -----------------------------------------------------------

    def submit(self, request: ImportRequest) -> ImportBatchResult:
        logger.debug("POST %s/import transactions=%d", self.base_url, len(request))
        body = _unwrap(self._request("POST", "/import", request.to_api_dict()))
        try:
            rows = [
                RowOutcome(
                    row_number=int(item["row"]),
                    status=RowStatus.parse(item["status"]),
                    transaction_id=item.get("transactionId"),
                    error_message=item.get("errorMessage"),
                )
                for item in body.get("transactions") or []
            ]
            history_id = body.get("importHistoryId")
            return ImportBatchResult(
                success_count=int(body["successCount"]),
                failed_count=int(body["failedCount"]),
                import_history_id=str(history_id) if history_id is not None else None,
                rows=rows,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SubmissionError(f"malformed import response: {e!r}") from e

    def history(self) -> list[dict[str, Any]]:
        body = _unwrap(self._request("GET", "/import/history"))
        return list(body or [])

    def history_entry(self, history_id: str) -> dict[str, Any]:
        return _unwrap(self._request("GET", f"/import/history/{history_id}"))

    # -- catalogs ---------------------------------------------------------

    def _entries(self, path: str) -> list[CatalogEntry]:
        items = _unwrap(self._request("GET", path)) or []
        try:
            return [CatalogEntry(name=str(i["name"]), id=str(i["id"])) for i in items]
        except (KeyError, TypeError) as e:
            raise SubmissionError(f"malformed catalog response from {path}: {e!r}") from e

    def fetch_catalogs(self) -> Catalogs:
        """Read accounts, categories and groups from the backend."""
        return Catalogs.build(
            accounts=self._entries("/accounts"),
            categories=self._entries("/categories"),
            groups=self._entries("/groups"),
        )
