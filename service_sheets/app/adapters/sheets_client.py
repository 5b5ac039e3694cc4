"""
Google Sheets v4 REST client.
"""

from typing import Any, Dict, List, Optional, Protocol, TYPE_CHECKING
from urllib.parse import quote

import httpx

from shared.errors import UpstreamError
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class TokenProvider(Protocol):
    async def get_token(self) -> str: ...


class SheetsClient:
    """Thin adapter over the three spreadsheet calls the gateway needs.

    Failures are raised as ``UpstreamError`` carrying Google's own message.
    Calls are made once; there is no retry.
    """

    def __init__(
        self,
        base_url: str = "https://sheets.googleapis.com/v4",
        *,
        token_provider: Optional[TokenProvider] = None,
        metrics: Optional["MetricsCollector"] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.token_provider = token_provider
        self.metrics = metrics
        self.logger = get_logger("sheets.client")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def get_sheet_titles(self, spreadsheet_id: str) -> List[str]:
        """Return the titles of the spreadsheet's tabs, in order."""
        data = await self._request(
            "describe",
            "GET",
            f"/spreadsheets/{quote(spreadsheet_id, safe='')}",
            params={"fields": "sheets.properties"},
        )
        return [sheet.get("properties", {}).get("title", "") for sheet in data.get("sheets", [])]

    async def get_values(self, spreadsheet_id: str, range_: str) -> List[List[Any]]:
        """Return the raw cell matrix for ``range_`` (row-major)."""
        data = await self._request(
            "values_get",
            "GET",
            f"/spreadsheets/{quote(spreadsheet_id, safe='')}/values/{quote(range_, safe='')}",
        )
        return data.get("values") or []

    async def append_row(self, spreadsheet_id: str, range_: str, values: List[Any]) -> Dict[str, Any]:
        """Append one row of raw values after the table in ``range_``."""
        return await self._request(
            "values_append",
            "POST",
            f"/spreadsheets/{quote(spreadsheet_id, safe='')}/values/{quote(range_, safe='')}:append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": [values]},
        )

    async def _headers(self) -> Dict[str, str]:
        if self.token_provider is None:
            return {}
        token = await self.token_provider.get_token()
        return {"Authorization": f"Bearer {token}"}

    async def _request(self, operation: str, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"

        if self.metrics:
            with self.metrics.time_upstream_call(operation):
                return await self._send(operation, method, url, **kwargs)
        return await self._send(operation, method, url, **kwargs)

    async def _send(self, operation: str, method: str, url: str, **kwargs) -> Dict[str, Any]:
        headers = await self._headers()
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            self.logger.error("Sheets API transport error", operation=operation, url=url, error=str(exc))
            raise UpstreamError("sheets", str(exc) or exc.__class__.__name__, details={"operation": operation})

        if response.is_success:
            self.logger.debug("Sheets API call succeeded", operation=operation, url=url)
            return response.json()

        message = extract_error_message(response)
        self.logger.error(
            "Sheets API call failed",
            operation=operation,
            url=url,
            status_code=response.status_code,
            error=message,
        )
        raise UpstreamError(
            "sheets",
            message,
            upstream_status=response.status_code,
            details={"operation": operation},
        )


def extract_error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a Google API error body."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error

    return response.text or f"Sheets API returned status {response.status_code}"
