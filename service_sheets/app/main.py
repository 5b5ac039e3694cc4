"""
Sheets Gateway service: spreadsheet tabs as a cached JSON API.
"""

from typing import Any, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import RedirectResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .adapters.service_account import ServiceAccountTokenProvider
from .adapters.sheets_client import SheetsClient
from .caching.cache_store import CacheStore
from .domain.sheet_service import SheetService


class SheetsGatewayService(BaseService):
    """Sheets Gateway service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        sheets_client: Optional[SheetsClient] = None,
        cache: Optional[CacheStore] = None,
    ):
        super().__init__("sheets", config)

        self.token_provider: Optional[ServiceAccountTokenProvider] = None
        if sheets_client is None:
            if self.config.google_service_account:
                self.token_provider = ServiceAccountTokenProvider(
                    self.config.google_service_account,
                    self.config.google_scopes,
                    token_url=self.config.google_token_url,
                )
            else:
                self.logger.warning("No service account configured; calling the Sheets API unauthenticated")
            sheets_client = SheetsClient(
                self.config.sheets_api_url,
                token_provider=self.token_provider,
                metrics=self.metrics,
                timeout=self.config.upstream_timeout_seconds,
            )

        self.sheets_client = sheets_client
        self.cache = cache or CacheStore(self.config.cache_ttl_seconds, metrics=self.metrics)
        self.sheet_service = SheetService(self.sheets_client, self.cache)

        @self.app.on_event("shutdown")
        async def _shutdown():
            self.cache.clear()
            await self.sheets_client.close()
            if self.token_provider:
                await self.token_provider.close()

        self._setup_sheet_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.sheets_service = self

    async def _check_dependencies(self) -> Dict[str, Any]:
        return {"cache": self.cache.stats()}

    def _setup_sheet_routes(self):
        """Set up spreadsheet routes."""

        @self.app.get("/")
        async def root():
            return RedirectResponse(self.config.readme_url)

        @self.app.delete("/cache/{cache_key:path}")
        async def evict_cache(cache_key: str):
            """Force-evict one cache entry by its exact key."""
            return self.sheet_service.evict(cache_key)

        @self.app.get("/{spreadsheet_id}/{sheet}")
        async def read_sheet(spreadsheet_id: str, sheet: str):
            """Return the tab's rows as a JSON array of header-keyed objects."""
            result = await self.sheet_service.read_rows(spreadsheet_id, sheet)
            return Response(
                content=result.payload,
                media_type="application/json",
                headers={"X-Cache": "HIT" if result.cached else "MISS"},
            )

        @self.app.post("/{spreadsheet_id}/{sheet}")
        async def append_sheet_row(spreadsheet_id: str, sheet: str, request: Request):
            """Append the JSON array body as a new row."""
            try:
                payload = await request.json()
            except ValueError:
                payload = None
            return await self.sheet_service.append_row(spreadsheet_id, sheet, payload)


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI application."""
    service = SheetsGatewayService(config)
    return service.app


def run():
    """Run the service under uvicorn."""
    SheetsGatewayService().run()


if __name__ == "__main__":
    run()
