"""Cancellable Waits — sleep that an external cancellation signal can cut short.

Invariants:
    - Returns True when the full delay elapsed, False when the signal fired first
    - Never leaves a pending sleep or signal-wait task behind
    - A signal already set returns False without sleeping
"""

import asyncio

from computeops.core.protocols import Sleep


async def wait_or_cancel(
    delay: float, cancel: asyncio.Event | None, sleep: Sleep = asyncio.sleep,
) -> bool:
    if cancel is None:
        await sleep(delay)
        return True
    if cancel.is_set():
        return False

    sleeper = asyncio.ensure_future(sleep(delay))
    signal = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({sleeper, signal}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, signal):
            if not task.done():
                task.cancel()
        await asyncio.gather(sleeper, signal, return_exceptions=True)
    if cancel.is_set():
        return False
    sleeper.result()
    return True
