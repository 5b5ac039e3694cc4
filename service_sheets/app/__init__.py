"""
Sheets Gateway service package.

The gateway serves spreadsheet tabs as JSON rows:
- Reads go through a short-lived in-process response cache
- Appends write through to the spreadsheet and invalidate cached reads
- Operators can evict a single cache entry by key

Structure:
- app.main: FastAPI app, routes, and lifecycle wiring.
- app.adapters: HTTP clients for the Sheets API and OAuth2 tokens.
- app.caching: Self-expiring cache store.
- app.domain: Row shaping and the read/append/evict flows.
"""
