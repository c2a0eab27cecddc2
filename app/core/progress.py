"""
Cosmetic staged progress shown while a real call is in flight.

The stages advance on fixed timers regardless of how long the call takes;
run_with_progress() waits for the longer of the two before returning the
call's outcome.
"""
import asyncio
from typing import Any, Awaitable, List, Optional, Sequence

PLAN_STAGES = (
    "Initializing your account...",
    "Configuring security settings...",
    "Setting up your plan...",
    "Finalizing your subscription...",
)

PAYMENT_STAGES = (
    "Validating payment details...",
    "Securing your transaction...",
    "Processing payment...",
    "Finalizing your subscription...",
)


class StagedProgress:
    def __init__(self, stages: Sequence[str], stage_delay: float):
        self.stages: List[str] = list(stages)
        self.stage_delay = float(stage_delay)
        self.index = -1
        self.done = False

    @property
    def message(self) -> Optional[str]:
        if 0 <= self.index < len(self.stages):
            return self.stages[self.index]
        return None

    @property
    def percent(self) -> int:
        if not self.stages:
            return 100
        return int(round(((self.index + 1) / len(self.stages)) * 100))

    def reset(self) -> None:
        self.index = -1
        self.done = False

    async def run(self) -> None:
        self.reset()
        for i in range(len(self.stages)):
            self.index = i
            await asyncio.sleep(self.stage_delay)
        self.done = True

    def as_dict(self) -> dict:
        return {"stage": self.index + 1, "of": len(self.stages), "message": self.message, "percent": self.percent}


async def run_with_progress(call: Awaitable[Any], progress: StagedProgress) -> Any:
    """
    Run `call` and the progress animation side by side. Returns the call's
    result (or raises its exception) only after the animation has finished.
    """
    results = await asyncio.gather(call, progress.run(), return_exceptions=True)
    outcome = results[0]
    if isinstance(outcome, BaseException):
        raise outcome
    return outcome
