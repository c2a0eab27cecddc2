"""
Client for the checkout/cart/payment service.

One instance per wizard: the service keys the cart on cookies, so the
underlying httpx.AsyncClient (and its cookie jar) must not be shared.
"""
from typing import Any, Dict, Optional

import httpx

from app.clients.http import build_client, request_json
from app.core.errors import CollaboratorError
from app.settings import settings

SERVICE = "checkout"


class CheckoutApi:
    def __init__(self, base_url: Optional[str] = None, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = build_client(base_url or settings.CHECKOUT_API_URL, transport=transport)

    async def generate_checkout_id(self) -> str:
        body = await request_json(self._client, SERVICE, "GET", "/api/generate-checkout-id")
        checkout_id = ((body or {}).get("data") or {}).get("checkout_id")
        if not checkout_id:
            raise CollaboratorError(502, "Checkout id missing from response", body or {})
        return str(checkout_id)

    async def update_checkout_id(self, old_id: str, new_id: str) -> bool:
        body = await request_json(
            self._client,
            SERVICE,
            "POST",
            "/api/update-checkout-id",
            json={"old_checkout_id": old_id, "new_checkout_id": new_id},
        )
        status = str((body or {}).get("status") or "success").lower()
        if status not in ("success", "ok"):
            raise CollaboratorError(409, (body or {}).get("message") or "Checkout id update rejected", body)
        return True

    async def create_or_update_checkout(self, data: Dict[str, Any]) -> dict:
        return await request_json(self._client, SERVICE, "POST", "/api/checkout", json=data)

    async def get_checkout(self, checkout_id: str) -> dict:
        body = await request_json(self._client, SERVICE, "GET", "/api/checkout", params={"checkout_id": checkout_id})
        return (body or {}).get("data") or {}

    async def check_email_availability(self, email: str) -> bool:
        body = await request_json(
            self._client, SERVICE, "GET", "/api/check-email-availability", params={"email": email}
        )
        return bool(((body or {}).get("data") or {}).get("available"))

    async def get_cart(self) -> dict:
        return await request_json(self._client, SERVICE, "GET", "/api/cart") or {}

    async def link_account(self, checkout_id: str) -> dict:
        return await request_json(
            self._client, SERVICE, "POST", "/api/link-account", params={"checkout_id": checkout_id}, json={}
        )

    async def process_payment(self, *, card_name: str, card_number: str, cvv: str, expiry: str, sid: str) -> dict:
        body = await request_json(
            self._client,
            SERVICE,
            "POST",
            "/api/process-payment",
            json={"cardname": card_name, "cardnumber": card_number, "cvv": cvv, "expiry": expiry, "sid": sid},
        )
        # Some gateways answer 200 with status=error/failure
        status = str((body or {}).get("status") or "success").lower()
        if status in ("error", "failure", "failed", "declined"):
            raise CollaboratorError(402, (body or {}).get("message") or "", body)
        return body

    async def aclose(self) -> None:
        await self._client.aclose()
