from fastapi import APIRouter, Depends, HTTPException

from app.api.auth import require_api_key
from app.api.schemas import (
    AccountUpdate,
    CodeEntry,
    CountriesResponse,
    PaymentUpdate,
    PersonalUpdate,
    WizardResponse,
)
from app.core.countries import country_options
from app.core.registry import registry
from app.core.wizard import WizardController

router = APIRouter(prefix="/wizard", tags=["wizard"], dependencies=[Depends(require_api_key)])


def _wizard(client_id: str) -> WizardController:
    try:
        return registry.get(client_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Unknown wizard. Start a checkout first.")


def _reply(wizard: WizardController, ok: bool = True) -> WizardResponse:
    return WizardResponse(status="success" if ok else "error", ok=bool(ok), wizard=wizard.snapshot())


@router.get("/countries", response_model=CountriesResponse)
async def list_countries():
    return {"countries": country_options()}


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
@router.post("/{client_id}/start", response_model=WizardResponse)
async def start_wizard(client_id: str):
    wizard = registry.get_or_create(client_id)
    ok = await wizard.start()
    return _reply(wizard, ok)


@router.get("/{client_id}", response_model=WizardResponse)
async def get_wizard(client_id: str):
    return _reply(_wizard(client_id))


@router.delete("/{client_id}")
async def discard_wizard(client_id: str):
    removed = await registry.remove(client_id)
    return {"clientId": client_id, "removed": removed}


@router.post("/{client_id}/next", response_model=WizardResponse)
async def next_step(client_id: str):
    wizard = _wizard(client_id)
    ok = await wizard.next()
    return _reply(wizard, ok)


@router.post("/{client_id}/back", response_model=WizardResponse)
async def previous_step(client_id: str):
    wizard = _wizard(client_id)
    wizard.back()
    return _reply(wizard)


@router.delete("/{client_id}/notifications/{notification_id}", response_model=WizardResponse)
async def dismiss_notification(client_id: str, notification_id: str):
    wizard = _wizard(client_id)
    return _reply(wizard, wizard.dismiss_notification(notification_id))


# ---------------------------------------------------------------------------
# Personal
# ---------------------------------------------------------------------------
@router.patch("/{client_id}/personal", response_model=WizardResponse)
async def update_personal(client_id: str, body: PersonalUpdate):
    wizard = _wizard(client_id)
    wizard.update_personal(**body.model_dump(exclude_none=True))
    return _reply(wizard)


@router.post("/{client_id}/personal/primary", response_model=WizardResponse)
async def personal_primary(client_id: str):
    wizard = _wizard(client_id)
    ok = await wizard.primary()
    return _reply(wizard, ok)


@router.post("/{client_id}/personal/code", response_model=WizardResponse)
async def personal_code(client_id: str, body: CodeEntry):
    wizard = _wizard(client_id)
    ok = await wizard.enter_code(body.code)
    return _reply(wizard, ok)


@router.post("/{client_id}/personal/resend", response_model=WizardResponse)
async def personal_resend(client_id: str):
    wizard = _wizard(client_id)
    ok = await wizard.resend_code()
    return _reply(wizard, ok)


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------
@router.patch("/{client_id}/account", response_model=WizardResponse)
async def update_account(client_id: str, body: AccountUpdate):
    wizard = _wizard(client_id)
    wizard.update_account(**body.model_dump(exclude_none=True))
    return _reply(wizard)


@router.post("/{client_id}/account/submit", response_model=WizardResponse)
async def submit_account(client_id: str):
    wizard = _wizard(client_id)
    ok = await wizard.submit_account()
    return _reply(wizard, ok)


# ---------------------------------------------------------------------------
# Plan / Review
# ---------------------------------------------------------------------------
@router.post("/{client_id}/plan/run", response_model=WizardResponse)
async def run_plan(client_id: str):
    wizard = _wizard(client_id)
    await wizard.run_plan()
    return _reply(wizard)


@router.post("/{client_id}/plan/retry", response_model=WizardResponse)
async def retry_plan(client_id: str):
    wizard = _wizard(client_id)
    await wizard.retry_plan()
    return _reply(wizard)


@router.post("/{client_id}/review/load", response_model=WizardResponse)
async def load_review(client_id: str):
    wizard = _wizard(client_id)
    summary = await wizard.load_review()
    return _reply(wizard, summary is not None)


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------
@router.patch("/{client_id}/payment", response_model=WizardResponse)
async def update_payment(client_id: str, body: PaymentUpdate):
    wizard = _wizard(client_id)
    wizard.update_payment(**body.model_dump(exclude_none=True))
    return _reply(wizard)


@router.post("/{client_id}/payment/submit", response_model=WizardResponse)
async def submit_payment(client_id: str):
    wizard = _wizard(client_id)
    ok = await wizard.submit_payment()
    return _reply(wizard, ok)
