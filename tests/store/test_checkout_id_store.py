from unittest.mock import MagicMock, patch

from app.settings import settings
from app.store.models import FormRecord, PaymentRecord
from app.store.session_repo import CheckoutIdStore


def test_load_returns_none_when_missing():
    redis = MagicMock()
    redis.get.return_value = None
    assert CheckoutIdStore("c1", redis=redis).load() is None
    redis.get.assert_called_with("wizard:c1:checkout_id")


def test_load_decodes_bytes():
    redis = MagicMock()
    redis.get.return_value = b"chk_1"
    assert CheckoutIdStore("c1", redis=redis).load() == "chk_1"


def test_save_with_and_without_ttl():
    redis = MagicMock()
    store = CheckoutIdStore("c1", redis=redis)
    with patch.object(settings, "CHECKOUT_ID_TTL_SEC", 0):
        store.save("chk_1")
    redis.set.assert_called_with("wizard:c1:checkout_id", "chk_1")

    with patch.object(settings, "CHECKOUT_ID_TTL_SEC", 3600):
        store.save("chk_2")
    redis.set.assert_called_with("wizard:c1:checkout_id", "chk_2", ex=3600)


@patch("app.store.session_repo.get_redis")
def test_redis_is_connected_lazily(mock_get_redis):
    store = CheckoutIdStore("c1")
    mock_get_redis.assert_not_called()
    mock_get_redis.return_value.get.return_value = "chk_1"
    assert store.load() == "chk_1"
    mock_get_redis.assert_called_once()


def test_email_patch_keeps_username_in_sync():
    form = FormRecord()
    changed = form.patch(email="ada@example.com", username="someone-else", firstName="Ada")
    assert form.username == "ada@example.com"
    assert set(changed) == {"email", "firstName"}


def test_patch_skips_unchanged_and_none():
    form = FormRecord(firstName="Ada")
    assert form.patch(firstName="Ada", lastName=None) == {}


def test_public_view_hides_credentials():
    form = FormRecord(password="Secur3!pass", confirmPassword="Secur3!pass")
    view = form.public_view()
    assert "password" not in view
    assert "confirmPassword" not in view


def test_payment_display_and_mask():
    p = PaymentRecord(cardHolderName="Ada", cardNumber="4111-1111-1111-1234", cvv="123")
    assert p.display_number == "4111 1111 1111 1234"
    assert p.card_digits == "4111111111111234"
    assert p.masked_view()["cardNumber"] == "**** 1234"
    assert "cvv" not in p.masked_view()
