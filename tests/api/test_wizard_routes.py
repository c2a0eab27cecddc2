import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from app.main import app
from app.api.auth import require_api_key
from app.core.registry import WizardRegistry
from app.settings import settings


@pytest.fixture(autouse=True)
def skip_auth():
    app.dependency_overrides[require_api_key] = lambda: None
    yield
    app.dependency_overrides = {}


@pytest.fixture
def wizards(make_wizard):
    reg = WizardRegistry(factory=make_wizard)
    with patch("app.api.routes.registry", reg):
        yield reg


@pytest.fixture
def client(wizards):
    with TestClient(app) as c:
        yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_countries(client):
    response = client.get("/wizard/countries")
    assert response.status_code == 200
    codes = [c["code"] for c in response.json()["countries"]]
    assert codes == ["US", "CA", "AU", "BR"]


def test_start_creates_session(client, wizards):
    response = client.post("/wizard/c1/start")
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["wizard"]["checkoutId"] == "chk_1"
    assert body["wizard"]["stepName"] == "personal"
    assert body["wizard"]["personal"]["primaryAction"] == "sendCode"
    assert "c1" in wizards


def test_unknown_wizard_is_404(client):
    assert client.get("/wizard/nobody").status_code == 404


def test_invalid_country_is_422(client):
    client.post("/wizard/c1/start")
    response = client.patch("/wizard/c1/personal", json={"countryCode": "ZZ"})
    assert response.status_code == 422
    assert response.json()["fields"] == {"countryCode": "Unsupported country"}


def test_personal_patch_reflected_in_snapshot(client):
    client.post("/wizard/c1/start")
    response = client.patch("/wizard/c1/personal", json={"firstName": "Ada", "countryCode": "BR"})
    assert response.status_code == 200
    form = response.json()["wizard"]["form"]
    assert form["firstName"] == "Ada"
    assert form["countryCode"] == "BR"
    assert "password" not in form


def test_back_from_first_step_is_409(client):
    client.post("/wizard/c1/start")
    response = client.post("/wizard/c1/back")
    assert response.status_code == 409


def test_account_update_on_wrong_step_is_409(client):
    client.post("/wizard/c1/start")
    response = client.patch("/wizard/c1/account", json={"password": "Secur3!pass"})
    assert response.status_code == 409


def test_next_with_blank_form_stays_put(client):
    client.post("/wizard/c1/start")
    response = client.post("/wizard/c1/next")
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is False
    assert body["wizard"]["step"] == 1
    assert body["wizard"]["notifications"][-1]["message"] == "Please complete all required fields."


def test_discard_wizard(client, wizards):
    client.post("/wizard/c1/start")
    response = client.delete("/wizard/c1")
    assert response.json() == {"clientId": "c1", "removed": True}
    assert "c1" not in wizards


def test_api_key_enforced_when_configured():
    app.dependency_overrides = {}
    with patch.object(settings, "API_KEY", "secret"):
        with TestClient(app) as c:
            assert c.get("/wizard/countries").status_code == 401
            assert c.get("/wizard/countries", headers={"x-api-key": "secret"}).status_code == 200
