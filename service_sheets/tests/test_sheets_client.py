"""
Unit tests for the Sheets API client.
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock

from service_sheets.app.adapters.sheets_client import SheetsClient, extract_error_message
from shared.errors import UpstreamError
from shared.metrics import MetricsCollector


BASE_URL = "https://sheets.test/v4"


def make_client(handler, **kwargs) -> SheetsClient:
    return SheetsClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


class TestSheetsClient:
    """Test cases for SheetsClient."""

    @pytest.fixture
    def requests(self):
        """Requests seen by the mock transport."""
        return []

    @pytest.mark.asyncio
    async def test_get_values(self, requests):
        """Test reading a range."""
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"range": "Sheet1!A1:B2", "values": [["a", "b"], ["1", "2"]]})

        client = make_client(handler)
        values = await client.get_values("sheet-id", "My Sheet")
        await client.close()

        assert values == [["a", "b"], ["1", "2"]]
        assert requests[0].method == "GET"
        assert requests[0].url.raw_path.decode() == "/v4/spreadsheets/sheet-id/values/My%20Sheet"

    @pytest.mark.asyncio
    async def test_get_values_without_values_key(self):
        """Test that an empty range reads as an empty matrix."""
        client = make_client(lambda request: httpx.Response(200, json={"range": "Empty!A1:Z1000"}))

        assert await client.get_values("sheet-id", "Empty") == []
        await client.close()

    @pytest.mark.asyncio
    async def test_get_sheet_titles(self, requests):
        """Test describing a spreadsheet."""
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"sheets": [
                {"properties": {"sheetId": 0, "title": "Scores", "index": 0}},
                {"properties": {"sheetId": 7, "title": "Archive", "index": 1}},
            ]})

        client = make_client(handler)
        titles = await client.get_sheet_titles("sheet-id")
        await client.close()

        assert titles == ["Scores", "Archive"]
        assert requests[0].url.params["fields"] == "sheets.properties"

    @pytest.mark.asyncio
    async def test_append_row(self, requests):
        """Test the append request shape."""
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"spreadsheetId": "sheet-id", "updates": {"updatedRows": 1}})

        client = make_client(handler)
        result = await client.append_row("sheet-id", "Scores", ["cy", 7])
        await client.close()

        request = requests[0]
        assert result["updates"]["updatedRows"] == 1
        assert request.method == "POST"
        assert request.url.raw_path.decode().startswith("/v4/spreadsheets/sheet-id/values/Scores:append")
        assert request.url.params["valueInputOption"] == "RAW"
        assert request.url.params["insertDataOption"] == "INSERT_ROWS"
        assert json.loads(request.content) == {"values": [["cy", 7]]}

    @pytest.mark.asyncio
    async def test_upstream_error_message_is_surfaced(self):
        """Test that Google's error message becomes the UpstreamError message."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {
                "code": 400,
                "message": "Unable to parse range: Nope",
                "status": "INVALID_ARGUMENT",
            }})

        client = make_client(handler)
        with pytest.raises(UpstreamError) as exc_info:
            await client.get_values("sheet-id", "Nope")
        await client.close()

        assert exc_info.value.message == "Unable to parse range: Nope"
        assert exc_info.value.upstream_status == 400
        assert exc_info.value.details["operation"] == "values_get"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Test that connection failures surface as UpstreamError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(UpstreamError) as exc_info:
            await client.get_sheet_titles("sheet-id")
        await client.close()

        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_bearer_token_is_sent(self, requests):
        """Test that the token provider's token is attached."""
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"values": []})

        token_provider = AsyncMock()
        token_provider.get_token.return_value = "ya29.token"

        client = make_client(handler, token_provider=token_provider)
        await client.get_values("sheet-id", "Scores")
        await client.close()

        assert requests[0].headers["Authorization"] == "Bearer ya29.token"

    @pytest.mark.asyncio
    async def test_no_token_provider_sends_no_auth(self, requests):
        """Test that requests are unauthenticated without a provider."""
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"values": []})

        client = make_client(handler)
        await client.get_values("sheet-id", "Scores")
        await client.close()

        assert "Authorization" not in requests[0].headers

    @pytest.mark.asyncio
    async def test_calls_are_measured(self):
        """Test that upstream outcomes are recorded per operation."""
        metrics = MetricsCollector("sheets")
        responses = iter([
            httpx.Response(200, json={"values": []}),
            httpx.Response(403, json={"error": {"message": "The caller does not have permission"}}),
        ])

        client = make_client(lambda request: next(responses), metrics=metrics)
        await client.get_values("sheet-id", "Scores")
        with pytest.raises(UpstreamError):
            await client.get_values("sheet-id", "Scores")
        await client.close()

        registry = metrics.registry
        assert registry.get_sample_value(
            "upstream_requests_total", {"operation": "values_get", "outcome": "ok"}
        ) == 1
        assert registry.get_sample_value(
            "upstream_requests_total", {"operation": "values_get", "outcome": "error"}
        ) == 1


class TestExtractErrorMessage:
    """Test cases for extract_error_message."""

    def test_google_error_body(self):
        """Test the standard Google error envelope."""
        response = httpx.Response(404, json={"error": {"message": "Requested entity was not found."}})
        assert extract_error_message(response) == "Requested entity was not found."

    def test_plain_text_body(self):
        """Test a non-JSON error body."""
        response = httpx.Response(502, text="Bad Gateway")
        assert extract_error_message(response) == "Bad Gateway"

    def test_empty_body(self):
        """Test an empty error body."""
        response = httpx.Response(503)
        assert extract_error_message(response) == "Sheets API returned status 503"
