"""Bounded waits around provider calls."""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def bounded_wait(
    awaitable: Awaitable[T],
    timeout: float,
    cancel: Optional[asyncio.Event] = None,
) -> T:
    """
    Await a provider call for at most ``timeout`` seconds.

    Setting ``cancel`` while the call is pending ends the wait the same way
    the timeout does, so callers observe a single timeout-class signal.

    Args:
        awaitable: The provider call
        timeout: Upper bound in seconds
        cancel: Optional caller-owned cancellation event

    Returns:
        Whatever the provider call returned

    Raises:
        asyncio.TimeoutError: If the bound elapsed or ``cancel`` was set first
    """
    if cancel is None:
        return await asyncio.wait_for(awaitable, timeout)

    call_task = asyncio.ensure_future(awaitable)
    cancel_task = asyncio.create_task(cancel.wait())

    try:
        done, pending_tasks = await asyncio.wait(
            [call_task, cancel_task],
            timeout=timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        call_task.cancel()
        cancel_task.cancel()
        raise

    # Cancel whatever didn't complete
    for task in pending_tasks:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    if call_task not in done:
        raise asyncio.TimeoutError()
    return call_task.result()


async def run_in_daemon_thread(func: Callable[..., T], *args, **kwargs) -> T:
    """
    Run a blocking call on a daemon thread and await its result.

    Unlike ``asyncio.to_thread``, an abandoned call does not hold up
    ``asyncio.run`` or interpreter exit: once a bounded wait gives up, the
    thread is left to finish (or hang) on its own.

    Args:
        func: Blocking callable
        *args: Positional arguments for ``func``
        **kwargs: Keyword arguments for ``func``

    Returns:
        Whatever ``func`` returned
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def _resolve(result, error):
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def _worker():
        result, error = None, None
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            error = e
        try:
            loop.call_soon_threadsafe(_resolve, result, error)
        except RuntimeError:
            # Loop already closed; nobody is waiting for this call anymore
            logger.debug(f"Dropping result of abandoned call {getattr(func, '__name__', func)}")

    threading.Thread(target=_worker, daemon=True, name="authflow-call").start()
    return await future
