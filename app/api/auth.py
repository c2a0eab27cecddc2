import secrets

from fastapi import Header, HTTPException
from app.settings import settings


def require_api_key(x_api_key: str = Header(default="", alias="x-api-key")):
    """
    Guards every /wizard route.
    - API_KEY unset: open (the checkout page calls us directly from the browser).
    - API_KEY set: the x-api-key header must match it.
    """
    expected = settings.API_KEY
    if not expected:
        return
    if not secrets.compare_digest(x_api_key or "", expected):
        raise HTTPException(status_code=401, detail="Invalid API key")
