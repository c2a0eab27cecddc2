"""
In-process registry of live wizards, one per browser client id.

Wizards hold timers and open HTTP clients, so they live in memory; only the
checkout session id is durable (see app.store.session_repo). A client that
comes back after a restart, or after its idle wizard was evicted, gets a
fresh wizard that reads its id back.
"""
import asyncio
import time
from typing import Callable, Dict, List, Optional

from app.core.wizard import Collaborators, WizardController, WizardTimings
from app.observability.logging import log
from app.settings import settings
from app.store.session_repo import CheckoutIdStore

WizardFactory = Callable[[str], WizardController]


def default_factory(client_id: str) -> WizardController:
    return WizardController(
        client_id,
        Collaborators.from_settings(),
        CheckoutIdStore(client_id),
        timings=WizardTimings.from_settings(),
    )


class WizardRegistry:
    def __init__(
        self,
        factory: Optional[WizardFactory] = None,
        *,
        idle_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.factory = factory or default_factory
        self.idle_ttl = settings.WIZARD_IDLE_TTL_SEC if idle_ttl is None else float(idle_ttl)
        self._clock = clock
        self._wizards: Dict[str, WizardController] = {}
        self._last_seen: Dict[str, float] = {}

    def _touch(self, client_id: str) -> None:
        self._last_seen[client_id] = self._clock()

    def get(self, client_id: str) -> WizardController:
        wizard = self._wizards[client_id]
        self._touch(client_id)
        return wizard

    def get_or_create(self, client_id: str) -> WizardController:
        wizard = self._wizards.get(client_id)
        if wizard is None:
            wizard = self.factory(client_id)
            self._wizards[client_id] = wizard
            log(event="wizard_created", clientId=client_id)
        self._touch(client_id)
        return wizard

    async def remove(self, client_id: str) -> bool:
        wizard = self._wizards.pop(client_id, None)
        self._last_seen.pop(client_id, None)
        if wizard is None:
            return False
        await wizard.close()
        return True

    async def evict_idle(self) -> List[str]:
        """Close wizards nobody has touched for idle_ttl seconds. A wizard mid-submit is kept."""
        if self.idle_ttl <= 0:
            return []
        now = self._clock()
        stale = [
            cid for cid, seen in self._last_seen.items()
            if now - seen > self.idle_ttl and not self._wizards[cid].busy
        ]
        for cid in stale:
            log(event="wizard_evicted", clientId=cid, idleSec=int(now - self._last_seen[cid]))
            await self.remove(cid)
        return stale

    async def sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.evict_idle()
            except Exception as e:
                log(event="wizard_sweep_failed", errorType=type(e).__name__, error=str(e)[:300])

    async def close_all(self) -> None:
        for client_id in list(self._wizards):
            await self.remove(client_id)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self._wizards

    def __len__(self) -> int:
        return len(self._wizards)


registry = WizardRegistry()
