"""
Rate limiting utilities for external API calls.
"""

from aiolimiter import AsyncLimiter

from config import NOMINATIM_REQUESTS_PER_SECOND

# Public Nominatim allows an absolute maximum of 1 request per second
nominatim_rate_limiter = AsyncLimiter(NOMINATIM_REQUESTS_PER_SECOND, 1)
