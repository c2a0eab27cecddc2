import pytest
from unittest.mock import AsyncMock, MagicMock

from app.core.wizard import Collaborators, WizardController, WizardTimings

CART = {
    "items": [
        {
            "plan_id": 7,
            "plan_name": "Family Shield",
            "plan_description": "Up to 5 devices",
            "plan_image": "",
            "plan_quantity": 1,
            "price": 59.99,
            "is_annual": True,
        }
    ],
    "cart_subtotal": 59.99,
    "cart_discount": 0,
    "shortfall_for_discount": "10.01",
    "cart_total": 59.99,
}


@pytest.fixture
def apis():
    checkout = AsyncMock()
    checkout.generate_checkout_id.side_effect = ["chk_1", "chk_2", "chk_3"]
    checkout.update_checkout_id.return_value = True
    checkout.create_or_update_checkout.return_value = {"status": "success"}
    checkout.get_checkout.return_value = {}
    checkout.check_email_availability.return_value = True
    checkout.get_cart.return_value = CART
    checkout.link_account.return_value = {"status": "success"}
    checkout.process_payment.return_value = {"status": "success"}

    mfa = AsyncMock()
    mfa.send_verification_code.return_value = "pending"
    mfa.resend_verification_code.return_value = "pending"
    mfa.verify_code.return_value = "approved"

    zip_lookup = AsyncMock()
    zip_lookup.lookup.return_value = ("CA", "Beverly Hills")

    return Collaborators(checkout=checkout, mfa=mfa, zip_lookup=zip_lookup)


@pytest.fixture
def store():
    s = MagicMock()
    s.client_id = "client_1"
    s.load.return_value = None
    return s


@pytest.fixture
def timings():
    return WizardTimings(
        email_debounce=0,
        mfa_cooldown=30,
        plan_stage_delay=0,
        plan_advance_delay=0,
        payment_stage_delay=0,
        redirect_delay=0,
        notification_ttl=0,
    )


@pytest.fixture
def make_wizard(apis, store, timings):
    def _make(client_id="client_1", **kwargs):
        return WizardController(client_id, apis, store, timings=timings, **kwargs)
    return _make
