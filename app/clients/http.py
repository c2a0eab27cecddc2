import time
from typing import Any, Optional

import httpx

from app.core.errors import CollaboratorError, CollaboratorUnavailable
from app.observability.logging import log
from app.settings import settings

DEFAULT_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}

# Dropped from request logs even when PII redaction is off
NEVER_LOGGED = {"cardnumber", "cvv", "passphrase", "password", "code"}


def build_client(base_url: str, *, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        headers=DEFAULT_HEADERS,
        timeout=settings.HTTP_TIMEOUT_SEC if timeout is None else timeout,
        transport=transport,
    )


def _json_or_empty(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return {}


def _loggable(body: Any) -> Any:
    if not isinstance(body, dict):
        return body
    return {k: v for k, v in body.items() if k not in NEVER_LOGGED}


def _server_message(body: Any) -> str:
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error") or body.get("detail")
        if isinstance(msg, str):
            return msg
    return ""


async def request_json(client: httpx.AsyncClient, service: str, method: str, url: str, **kwargs) -> Any:
    """
    Issue one request and return the decoded JSON body.

    Raises CollaboratorError for non-2xx responses and CollaboratorUnavailable
    when no response was received. Never retries.
    """
    start = time.time()
    log(event="collaborator_request", service=service, method=method, url=url, payload=_loggable(kwargs.get("json") or {}))
    try:
        resp = await client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        log(
            event="collaborator_unavailable",
            service=service,
            url=url,
            elapsedMs=int((time.time() - start) * 1000),
            errorType=type(e).__name__,
            error=str(e)[:300],
        )
        raise CollaboratorUnavailable(f"{service} unreachable: {type(e).__name__}") from e

    elapsed_ms = int((time.time() - start) * 1000)
    body = _json_or_empty(resp)

    if 200 <= resp.status_code < 300:
        log(event="collaborator_response", service=service, url=url, statusCode=int(resp.status_code), elapsedMs=elapsed_ms)
        return body

    log(
        event="collaborator_rejected",
        service=service,
        url=url,
        statusCode=int(resp.status_code),
        elapsedMs=elapsed_ms,
        responseText=(resp.text or "")[:300],
    )
    raise CollaboratorError(resp.status_code, _server_message(body), body if isinstance(body, dict) else {})
