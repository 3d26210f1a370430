import asyncio
from typing import Any, Awaitable, Callable


def get_create_event_loop() -> asyncio.AbstractEventLoop:
    """Get the running event loop, or create a new one."""
    try:
        from IPython.core.getipython import get_ipython

        if get_ipython() is not None:
            # notebooks already run a loop; nest_asyncio lets run_until_complete re-enter it
            import nest_asyncio

            nest_asyncio.apply()

    except ImportError:
        pass

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()

    return loop


def synchronize(afunc: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
    """Run async function in synchronous context."""
    loop = get_create_event_loop()
    if loop.is_running():
        # re-entered through nest_asyncio; the loop belongs to the caller
        return loop.run_until_complete(afunc(*args, **kwargs))

    try:
        return loop.run_until_complete(afunc(*args, **kwargs))
    finally:
        loop.close()
