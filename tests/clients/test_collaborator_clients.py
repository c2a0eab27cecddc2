import json
import httpx
import pytest
from unittest.mock import patch

from app.clients.checkout_api import CheckoutApi
from app.clients.mfa import MfaApi
from app.clients.zip_lookup import ZipLookupApi
from app.core.errors import CollaboratorError, CollaboratorUnavailable
from app.settings import settings


def _transport(routes, seen=None):
    """routes: {(METHOD, path): (status, json_body)}"""
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        status, body = routes[(request.method, request.url.path)]
        return httpx.Response(status, json=body)
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_generate_checkout_id():
    api = CheckoutApi("http://checkout.test", transport=_transport({
        ("GET", "/api/generate-checkout-id"): (200, {"status": "success", "data": {"checkout_id": "chk_42"}}),
    }))
    assert await api.generate_checkout_id() == "chk_42"
    await api.aclose()


@pytest.mark.asyncio
async def test_generate_checkout_id_missing_is_error():
    api = CheckoutApi("http://checkout.test", transport=_transport({
        ("GET", "/api/generate-checkout-id"): (200, {"status": "success", "data": {}}),
    }))
    with pytest.raises(CollaboratorError) as exc:
        await api.generate_checkout_id()
    assert exc.value.status_code == 502
    await api.aclose()


@pytest.mark.asyncio
async def test_rejection_carries_status_and_server_message():
    api = CheckoutApi("http://checkout.test", transport=_transport({
        ("POST", "/api/checkout"): (409, {"message": "Email already registered"}),
    }))
    with pytest.raises(CollaboratorError) as exc:
        await api.create_or_update_checkout({"checkout_id": "chk_1"})
    assert exc.value.status_code == 409
    assert exc.value.server_message == "Email already registered"
    await api.aclose()


@pytest.mark.asyncio
async def test_network_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = CheckoutApi("http://checkout.test", transport=httpx.MockTransport(handler))
    with pytest.raises(CollaboratorUnavailable):
        await api.get_cart()
    await api.aclose()


@pytest.mark.asyncio
async def test_link_account_sends_checkout_id_as_query():
    seen = []
    api = CheckoutApi("http://checkout.test", transport=_transport({
        ("POST", "/api/link-account"): (200, {"status": "success"}),
    }, seen))
    await api.link_account("chk_9")
    assert seen[0].url.params["checkout_id"] == "chk_9"
    await api.aclose()


@pytest.mark.asyncio
async def test_email_availability_flag():
    api = CheckoutApi("http://checkout.test", transport=_transport({
        ("GET", "/api/check-email-availability"): (200, {"data": {"available": False}}),
    }))
    assert await api.check_email_availability("ada@example.com") is False
    await api.aclose()


@pytest.mark.asyncio
async def test_payment_body_and_declined_status():
    seen = []
    api = CheckoutApi("http://checkout.test", transport=_transport({
        ("POST", "/api/process-payment"): (200, {"status": "declined", "message": "Card declined"}),
    }, seen))
    with pytest.raises(CollaboratorError) as exc:
        await api.process_payment(card_name="Ada", card_number="4111111111111111", cvv="123", expiry="12/30", sid="chk_1")
    assert exc.value.status_code == 402
    assert exc.value.server_message == "Card declined"
    assert json.loads(seen[0].content) == {
        "cardname": "Ada", "cardnumber": "4111111111111111", "cvv": "123", "expiry": "12/30", "sid": "chk_1",
    }
    await api.aclose()


@pytest.mark.asyncio
async def test_update_checkout_id_payload():
    seen = []
    api = CheckoutApi("http://checkout.test", transport=_transport({
        ("POST", "/api/update-checkout-id"): (200, {"status": "success"}),
    }, seen))
    assert await api.update_checkout_id("old", "new")
    assert json.loads(seen[0].content) == {"old_checkout_id": "old", "new_checkout_id": "new"}
    await api.aclose()


@pytest.mark.asyncio
async def test_mfa_statuses():
    api = MfaApi("http://mfa.test", transport=_transport({
        ("POST", "/verify-phone"): (200, {"status": "pending"}),
        ("POST", "/verify-code"): (200, {"status": "denied", "message": "Code expired"}),
    }))
    assert await api.send_verification_code("+15551234567", "ada@example.com") == "pending"
    with pytest.raises(CollaboratorError) as exc:
        await api.verify_code("123456", "ada@example.com")
    assert exc.value.server_message == "Code expired"
    await api.aclose()


@pytest.mark.asyncio
async def test_zip_lookup():
    api = ZipLookupApi("http://zip.test", transport=_transport({
        ("GET", "/us/90210"): (200, {"places": [{"place name": "Beverly Hills", "state abbreviation": "CA"}]}),
    }))
    assert await api.lookup("90210") == ("CA", "Beverly Hills")
    assert await api.lookup("9021") is None
    await api.aclose()


@pytest.mark.asyncio
@patch("app.clients.http.log")
async def test_card_fields_never_logged(mock_log):
    api = CheckoutApi("http://checkout.test", transport=_transport({
        ("POST", "/api/process-payment"): (200, {"status": "success"}),
    }))
    with patch.object(settings, "ENABLE_PII_REDACTION", False):
        await api.process_payment(card_name="Ada", card_number="4111111111111111", cvv="123", expiry="12/30", sid="chk_1")

    request_log = next(c.kwargs for c in mock_log.call_args_list if c.kwargs.get("event") == "collaborator_request")
    assert request_log["payload"] == {"cardname": "Ada", "expiry": "12/30", "sid": "chk_1"}
    await api.aclose()
