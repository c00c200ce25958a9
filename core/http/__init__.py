"""HTTP client utilities and session management."""

from core.http.nominatim import NominatimClient
from core.http.retry import retry_async
from core.http.session import cleanup_session, get_session

__all__ = [
    "NominatimClient",
    "cleanup_session",
    "get_session",
    "retry_async",
]
