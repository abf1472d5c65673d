# src/complexity_shell/core/loop_runner.py
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)

_LOOP: Optional[asyncio.AbstractEventLoop] = None
_THREAD: Optional[threading.Thread] = None


def ensure_background_loop() -> asyncio.AbstractEventLoop:
    """
    Starts (once) a daemon thread running a persistent event loop. The Flask
    proxying service keeps its aiohttp sessions bound to this loop so they
    survive across requests.
    """
    global _LOOP, _THREAD
    if _LOOP is not None:
        return _LOOP

    loop = asyncio.new_event_loop()

    def _serve_forever() -> None:
        asyncio.set_event_loop(loop)
        loop.run_forever()

    _THREAD = threading.Thread(target=_serve_forever, name="complexity-loop", daemon=True)
    _THREAD.start()
    _LOOP = loop
    logger.debug("Background event loop started.")
    return loop


def stop_background_loop(timeout: float = 5.0) -> None:
    """Stops the background loop and waits for its thread to finish."""
    global _LOOP, _THREAD
    if _LOOP is None:
        return
    _LOOP.call_soon_threadsafe(_LOOP.stop)
    if _THREAD is not None:
        _THREAD.join(timeout)
    _LOOP.close()
    _LOOP, _THREAD = None, None
    logger.debug("Background event loop stopped.")


def run_on_main_loop(coro: Coroutine[Any, Any, Any], timeout: float | None = None) -> Any:
    """
    Runs `coro` to completion and returns its result.

    With a background loop (server process) the coroutine is submitted to it
    and this thread blocks for at most `timeout` seconds; on timeout the
    in-flight work is cancelled. Without one (CLI, tests) asyncio.run is used.
    """
    if _LOOP is None:
        return asyncio.run(coro)

    future = asyncio.run_coroutine_threadsafe(coro, _LOOP)
    try:
        return future.result(timeout)
    except concurrent.futures.TimeoutError:
        future.cancel()
        raise
