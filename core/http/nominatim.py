"""
Nominatim HTTP client.

Reverse geocoding only: the tracking engine never searches by name.
"""

from __future__ import annotations

import logging
from typing import Any

from config import get_nominatim_reverse_url, get_nominatim_user_agent
from core.exceptions import ExternalServiceException
from core.http.retry import retry_async
from core.http.session import get_session

logger = logging.getLogger(__name__)


class NominatimClient:
    def __init__(
        self,
        *,
        reverse_url: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        self._reverse_url = reverse_url or get_nominatim_reverse_url()
        self._user_agent = user_agent or get_nominatim_user_agent()

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent}

    @retry_async(max_retries=2, retry_delay=1.0)
    async def reverse(
        self,
        lat: float,
        lon: float,
        *,
        zoom: int = 18,
    ) -> dict[str, Any] | None:
        """
        Reverse geocode one coordinate.

        Returns:
            The raw jsonv2 payload, or None when Nominatim has no feature at
            this point.

        Raises:
            ExternalServiceException: on any non-success HTTP status or an
                unexpected payload shape.
        """
        params = {
            "format": "jsonv2",
            "lat": lat,
            "lon": lon,
            "zoom": zoom,
            "addressdetails": 1,
        }
        session = await get_session()
        async with session.get(
            self._reverse_url,
            params=params,
            headers=self._headers(),
        ) as response:
            if response.status == 404:
                logger.debug("Nominatim reverse returned 404 for %s,%s", lat, lon)
                return None
            if response.status == 429:
                retry_after = int(response.headers.get("Retry-After", 5))
                msg = "Nominatim reverse error: 429"
                raise ExternalServiceException(
                    msg,
                    {"status": 429, "retry_after": retry_after},
                )
            if response.status != 200:
                body = await response.text()
                msg = f"Nominatim reverse error: {response.status}"
                raise ExternalServiceException(
                    msg,
                    {
                        "status": response.status,
                        "body": body,
                        "url": self._reverse_url,
                    },
                )
            data = await response.json()

        if not isinstance(data, dict):
            msg = "Nominatim reverse error: unexpected response"
            raise ExternalServiceException(msg, {"url": self._reverse_url})
        if data.get("error"):
            # "Unable to geocode" is a valid empty answer, not a failure.
            logger.debug("Nominatim reverse found nothing: %s", data["error"])
            return None
        return data
