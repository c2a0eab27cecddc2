from typing import Optional, Tuple

import httpx

from app.clients.http import build_client, request_json
from app.settings import settings
from app.utils.text import digits_only

SERVICE = "zip_lookup"


class ZipLookupApi:
    """Zippopotam-style lookup; only 5-digit US codes are ever queried."""

    def __init__(self, base_url: Optional[str] = None, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = build_client(base_url or settings.ZIP_LOOKUP_URL, transport=transport)

    async def lookup(self, zip_code: str) -> Optional[Tuple[str, str]]:
        """Return (state abbreviation, city) or None when the service has no match."""
        z = digits_only(zip_code)
        if len(z) != 5:
            return None
        body = await request_json(self._client, SERVICE, "GET", f"/us/{z}")
        places = (body or {}).get("places") or []
        if not places:
            return None
        first = places[0] or {}
        state = first.get("state abbreviation") or ""
        city = first.get("place name") or ""
        if not state and not city:
            return None
        return state, city

    async def aclose(self) -> None:
        await self._client.aclose()
