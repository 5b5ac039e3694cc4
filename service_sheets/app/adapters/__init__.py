"""
Adapters package for the Sheets Gateway.

Contains HTTP client wrappers for Google APIs. Adapters encapsulate
request shapes, authentication headers and the mapping of upstream
failures to shared errors. They never retry.
"""

from .service_account import ServiceAccountTokenProvider
from .sheets_client import SheetsClient

__all__ = [
    "ServiceAccountTokenProvider",
    "SheetsClient",
]
