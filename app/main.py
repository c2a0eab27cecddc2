import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.api.routes import router
from app.core import errors
from app.core.registry import registry
from app.observability.logging import log
from app.settings import settings


@asynccontextmanager
async def lifespan(_app: FastAPI):
    log(
        event="boot",
        checkoutApi=settings.CHECKOUT_API_URL,
        mfaApi=settings.MFA_API_URL,
        redirectDelaySec=settings.PAYMENT_REDIRECT_DELAY_SEC,
        rotateBeforePayment=settings.ROTATE_CHECKOUT_ID_BEFORE_PAYMENT,
    )
    sweeper = asyncio.create_task(registry.sweep_forever(settings.WIZARD_SWEEP_INTERVAL_SEC))
    yield
    sweeper.cancel()
    await registry.close_all()


app = FastAPI(title="Checkout Wizard API", lifespan=lifespan)

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Checkout wizard API is running. Start with POST /wizard/{clientId}/start."
    }


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Wizard errors are user-recoverable; map them to 4xx with a readable message.
# ---------------------------------------------------------------------------
@app.exception_handler(errors.ValidationFailed)
async def validation_failed_handler(request: Request, exc: errors.ValidationFailed):
    return JSONResponse(status_code=422, content={"status": "error", "message": str(exc), "fields": exc.fields})


@app.exception_handler(errors.StepBusy)
async def step_busy_handler(request: Request, exc: errors.StepBusy):
    return JSONResponse(status_code=409, content={"status": "error", "message": str(exc)})


@app.exception_handler(errors.InvalidTransition)
async def invalid_transition_handler(request: Request, exc: errors.InvalidTransition):
    return JSONResponse(status_code=409, content={"status": "error", "message": str(exc)})


@app.exception_handler(errors.WizardError)
async def wizard_error_handler(request: Request, exc: errors.WizardError):
    return JSONResponse(status_code=400, content={"status": "error", "message": errors.describe(exc)})


@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    log(event="unhandled_exception", path=request.url.path, errorType=type(exc).__name__, error=str(exc)[:500])
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": errors.GENERIC_ERROR},
    )
