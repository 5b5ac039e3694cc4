"""
Domain package for the Sheets Gateway.

- rows: cache keys, sheet-name normalization, row-table shaping
- sheet_service: read, append and eviction flows
"""
