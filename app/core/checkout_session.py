import asyncio
from typing import Optional

from starlette.concurrency import run_in_threadpool

from app.clients.checkout_api import CheckoutApi
from app.core.errors import SessionNotReady
from app.observability.logging import log
from app.store.models import CheckoutSession
from app.store.session_repo import CheckoutIdStore
from app.utils.time import now_ms


class CheckoutSessionManager:
    """
    Owns the server-issued checkout id for one wizard.

    ensure() creates it at most once: a latch plus a shared future makes
    re-entrant callers wait for the first creation instead of issuing their own.
    """

    def __init__(self, api: CheckoutApi, store: CheckoutIdStore):
        self.api = api
        self.store = store
        self.session: Optional[CheckoutSession] = None
        self.restored = False
        self._creation_started = False
        self._creation: Optional[asyncio.Future] = None

    @property
    def id(self) -> Optional[str]:
        return self.session.id if self.session else None

    async def ensure(self) -> str:
        if self.session:
            return self.session.id

        if self._creation_started:
            return await asyncio.shield(self._creation)

        self._creation_started = True
        self._creation = asyncio.get_running_loop().create_future()
        try:
            cached = await run_in_threadpool(self.store.load)
            if cached:
                self.session = CheckoutSession(id=cached, createdAt=now_ms())
                self.restored = True
                log(event="checkout_session_restored", clientId=self.store.client_id, checkoutId=cached)
            else:
                new_id = await self.api.generate_checkout_id()
                self.session = CheckoutSession(id=new_id, createdAt=now_ms())
                await run_in_threadpool(self.store.save, new_id)
                log(event="checkout_session_created", clientId=self.store.client_id, checkoutId=new_id)
        except Exception as e:
            # Re-open the latch so an explicit user retry can try again.
            self._creation_started = False
            self._creation.set_exception(e)
            # Mark retrieved so an unawaited future doesn't warn.
            self._creation.exception()
            raise
        self._creation.set_result(self.session.id)
        return self.session.id

    def require(self) -> str:
        if not self.session:
            raise SessionNotReady("Checkout session not found")
        return self.session.id

    async def rotate(self) -> str:
        """
        Swap in a fresh id before payment. Any failure keeps the current id;
        rotation never blocks checkout.
        """
        old_id = self.require()
        try:
            new_id = await self.api.generate_checkout_id()
            await self.api.update_checkout_id(old_id, new_id)
        except Exception as e:
            log(
                event="checkout_session_rotate_failed",
                clientId=self.store.client_id,
                checkoutId=old_id,
                errorType=type(e).__name__,
                error=str(e)[:300],
            )
            return old_id

        self.session = CheckoutSession(id=new_id, createdAt=now_ms())
        try:
            await run_in_threadpool(self.store.save, new_id)
        except Exception as e:
            log(event="checkout_id_persist_failed", clientId=self.store.client_id, errorType=type(e).__name__)
        log(event="checkout_session_rotated", clientId=self.store.client_id, oldCheckoutId=old_id, checkoutId=new_id)
        return new_id

