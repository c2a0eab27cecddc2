from typing import Optional

import httpx

from app.clients.http import build_client, request_json
from app.core.errors import CollaboratorError
from app.settings import settings

SERVICE = "mfa"

SEND_ACCEPTED = {"success", "pending"}
VERIFY_ACCEPTED = {"success", "approved", "authenticated"}


def _status(body) -> str:
    return str((body or {}).get("status") or "").lower()


def _message(body) -> str:
    msg = (body or {}).get("message")
    return msg if isinstance(msg, str) else ""


class MfaApi:
    """Phone verification service: send, confirm and resend SMS codes."""

    def __init__(self, base_url: Optional[str] = None, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = build_client(base_url or settings.MFA_API_URL, transport=transport)

    async def send_verification_code(self, phone: str, email: str) -> str:
        body = await request_json(self._client, SERVICE, "POST", "/verify-phone", json={"phone": phone, "email": email})
        if _status(body) not in SEND_ACCEPTED:
            raise CollaboratorError(200, _message(body), body if isinstance(body, dict) else {})
        return _status(body)

    async def verify_code(self, code: str, email: str) -> str:
        body = await request_json(self._client, SERVICE, "POST", "/verify-code", json={"code": code, "email": email})
        if _status(body) not in VERIFY_ACCEPTED:
            raise CollaboratorError(200, _message(body), body if isinstance(body, dict) else {})
        return _status(body)

    async def resend_verification_code(self, phone: str, email: str) -> str:
        body = await request_json(self._client, SERVICE, "POST", "/resend-code", json={"phone": phone, "email": email})
        if _status(body) not in SEND_ACCEPTED:
            raise CollaboratorError(200, _message(body), body if isinstance(body, dict) else {})
        return _status(body)

    async def aclose(self) -> None:
        await self._client.aclose()
