import asyncio
import time
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.core.checkout_session import CheckoutSessionManager
from app.core.errors import CollaboratorUnavailable, SessionNotReady


@pytest.fixture
def api():
    a = AsyncMock()
    a.generate_checkout_id.side_effect = ["chk_1", "chk_2"]
    a.update_checkout_id.return_value = True
    return a


@pytest.fixture
def store():
    s = MagicMock()
    s.client_id = "c1"
    s.load.return_value = None
    return s


@pytest.mark.asyncio
async def test_ensure_generates_and_persists(api, store):
    mgr = CheckoutSessionManager(api, store)
    assert await mgr.ensure() == "chk_1"
    assert mgr.id == "chk_1"
    assert not mgr.restored
    store.save.assert_called_once_with("chk_1")


@pytest.mark.asyncio
async def test_ensure_reuses_cached_id(api, store):
    store.load.return_value = "chk_saved"
    mgr = CheckoutSessionManager(api, store)
    assert await mgr.ensure() == "chk_saved"
    assert mgr.restored
    api.generate_checkout_id.assert_not_called()
    store.save.assert_not_called()


@pytest.mark.asyncio
async def test_concurrent_ensure_creates_once(api, store):
    gate = asyncio.Event()

    async def slow_generate():
        await gate.wait()
        return "chk_once"

    api.generate_checkout_id.side_effect = slow_generate
    mgr = CheckoutSessionManager(api, store)

    pending = asyncio.gather(mgr.ensure(), mgr.ensure(), mgr.ensure())
    await asyncio.sleep(0)
    gate.set()
    ids = await pending

    assert ids == ["chk_once", "chk_once", "chk_once"]
    assert api.generate_checkout_id.call_count == 1


@pytest.mark.asyncio
async def test_failed_creation_reopens_latch(api, store):
    api.generate_checkout_id.side_effect = [CollaboratorUnavailable("down"), "chk_retry"]
    mgr = CheckoutSessionManager(api, store)

    with pytest.raises(CollaboratorUnavailable):
        await mgr.ensure()
    assert mgr.id is None

    assert await mgr.ensure() == "chk_retry"


def test_require_without_session(api, store):
    mgr = CheckoutSessionManager(api, store)
    with pytest.raises(SessionNotReady):
        mgr.require()


@pytest.mark.asyncio
async def test_rotate_swaps_id(api, store):
    mgr = CheckoutSessionManager(api, store)
    await mgr.ensure()

    assert await mgr.rotate() == "chk_2"
    api.update_checkout_id.assert_awaited_once_with("chk_1", "chk_2")
    assert mgr.id == "chk_2"
    store.save.assert_called_with("chk_2")


@pytest.mark.asyncio
async def test_rotate_failure_keeps_current_id(api, store):
    api.update_checkout_id.side_effect = CollaboratorUnavailable("down")
    mgr = CheckoutSessionManager(api, store)
    await mgr.ensure()

    assert await mgr.rotate() == "chk_1"
    assert mgr.id == "chk_1"
    store.save.assert_called_once_with("chk_1")


@pytest.mark.asyncio
async def test_slow_store_does_not_block_event_loop(api, store):
    def slow_load():
        time.sleep(0.3)
        return "chk_saved"

    store.load.side_effect = slow_load
    mgr = CheckoutSessionManager(api, store)

    gaps = []

    async def heartbeat():
        last = time.monotonic()
        while mgr.id is None:
            await asyncio.sleep(0.02)
            now = time.monotonic()
            gaps.append(now - last)
            last = now

    beat = asyncio.ensure_future(heartbeat())
    assert await mgr.ensure() == "chk_saved"
    await beat

    assert gaps
    assert max(gaps) < 0.2
