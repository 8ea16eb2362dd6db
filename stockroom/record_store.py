"""
Record Store Client

Thin client for the Airtable REST API (v0) used as the inventory record store.

Supported operations:
- first_page: single-page filtered/sorted select
- select: full scan, following pagination offsets
- find_one: first record matching a predicate
- create: batch create (chunked to the store's batch limit)
- update: batch update of id + fields

Records are returned exactly as the store sends them:
    {"id": "rec...", "createdTime": "2024-01-15T10:00:00.000Z", "fields": {...}}

Every request carries an explicit timeout. Any transport failure, timeout,
non-2xx response or malformed body is raised as StoreError. There are no retries.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import quote

import requests

from stockroom.config import (
    AIRTABLE_API_KEY,
    AIRTABLE_API_URL,
    AIRTABLE_BASE_ID,
    RECORD_STORE_BATCH_SIZE,
    RECORD_STORE_TIMEOUT,
)
from stockroom.exceptions import StoreError
from stockroom.filters import Predicate
from stockroom.logger import get_logger

logger = get_logger(__name__)

SortSpec = Sequence[Tuple[str, str]]


def _chunks(items: List[Any], size: int) -> Iterable[List[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class RecordStoreClient:
    """Table-oriented client for the remote record store."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_id: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else AIRTABLE_API_KEY
        self.base_id = base_id if base_id is not None else AIRTABLE_BASE_ID
        self.api_url = (api_url or AIRTABLE_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else RECORD_STORE_TIMEOUT
        self._session = session

    @property
    def session(self) -> requests.Session:
        """Lazy session initialization"""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _table_url(self, table: str) -> str:
        return f"{self.api_url}/{self.base_id}/{quote(table, safe='')}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[List[Tuple[str, Any]]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.api_key or not self.base_id:
            raise StoreError("Record store credentials are not configured (AIRTABLE_API_KEY / AIRTABLE_BASE_ID)")

        url = self._table_url(table)
        logger.debug(f"{method} {table} params={params}")

        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise StoreError(f"{method} {table} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise StoreError(f"{method} {table} failed: {str(e)}") from e

        if response.status_code >= 400:
            raise StoreError(
                f"{method} {table} failed with HTTP {response.status_code}: {self._error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise StoreError(f"{method} {table} returned a non-JSON body") from e

        if not isinstance(body, dict):
            raise StoreError(f"{method} {table} returned an unexpected body")
        return body

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            error = response.json().get("error")
        except (ValueError, AttributeError):
            return response.text[:200]
        if isinstance(error, dict):
            return f"{error.get('type', 'ERROR')}: {error.get('message', '')}".strip()
        return str(error)

    @staticmethod
    def _select_params(
        filter: Optional[Predicate] = None,
        fields: Optional[Sequence[str]] = None,
        sort: Optional[SortSpec] = None,
        max_records: Optional[int] = None,
        page_size: Optional[int] = None,
        offset: Optional[str] = None,
    ) -> List[Tuple[str, Any]]:
        params: List[Tuple[str, Any]] = []
        if filter is not None:
            params.append(("filterByFormula", filter.to_formula()))
        for name in fields or []:
            params.append(("fields[]", name))
        for i, (field_name, direction) in enumerate(sort or []):
            params.append((f"sort[{i}][field]", field_name))
            params.append((f"sort[{i}][direction]", direction))
        if max_records is not None:
            params.append(("maxRecords", max_records))
        if page_size is not None:
            params.append(("pageSize", page_size))
        if offset:
            params.append(("offset", offset))
        return params

    def first_page(
        self,
        table: str,
        filter: Optional[Predicate] = None,
        fields: Optional[Sequence[str]] = None,
        sort: Optional[SortSpec] = None,
        max_records: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch a single page of records (at most 100)."""
        params = self._select_params(filter=filter, fields=fields, sort=sort, max_records=max_records)
        body = self._request("GET", table, params=params)
        return list(body.get("records", []))

    def select(
        self,
        table: str,
        filter: Optional[Predicate] = None,
        fields: Optional[Sequence[str]] = None,
        sort: Optional[SortSpec] = None,
        max_records: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch every matching record, following pagination offsets."""
        records: List[Dict[str, Any]] = []
        offset = None
        while True:
            params = self._select_params(
                filter=filter, fields=fields, sort=sort, max_records=max_records, offset=offset
            )
            body = self._request("GET", table, params=params)
            records.extend(body.get("records", []))
            offset = body.get("offset")
            if not offset or (max_records is not None and len(records) >= max_records):
                break

        if max_records is not None:
            records = records[:max_records]
        logger.debug(f"Selected {len(records)} record(s) from {table}")
        return records

    def find_one(
        self,
        table: str,
        filter: Predicate,
        sort: Optional[SortSpec] = None,
    ) -> Optional[Dict[str, Any]]:
        records = self.first_page(table, filter=filter, sort=sort, max_records=1)
        return records[0] if records else None

    def create(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Create one record per field-map in rows. Returns the created records in order."""
        created: List[Dict[str, Any]] = []
        for batch in _chunks(rows, RECORD_STORE_BATCH_SIZE):
            payload = {"records": [{"fields": fields} for fields in batch]}
            body = self._request("POST", table, payload=payload)
            created.extend(body.get("records", []))

        if len(created) != len(rows):
            raise StoreError(f"Created {len(created)} of {len(rows)} record(s) in {table}")
        logger.debug(f"Created {len(created)} record(s) in {table}")
        return created

    def update(self, table: str, updates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Update records. Each update is {"id": record_id, "fields": {...}}; unnamed fields are kept."""
        updated: List[Dict[str, Any]] = []
        for batch in _chunks(updates, RECORD_STORE_BATCH_SIZE):
            payload = {"records": [{"id": u["id"], "fields": u["fields"]} for u in batch]}
            body = self._request("PATCH", table, payload=payload)
            updated.extend(body.get("records", []))

        logger.debug(f"Updated {len(updated)} record(s) in {table}")
        return updated
