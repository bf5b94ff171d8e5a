import logging
from typing import Any, Callable, Optional

from pyee.asyncio import AsyncIOEventEmitter


class EventBus(AsyncIOEventEmitter):
    """
    Named-notification registry for a single managed interface.

    Listeners are called in registration order over a snapshot, so they may
    subscribe or unsubscribe (themselves included) while being notified.
    Coroutine listeners are scheduled on the running loop and tracked until
    they finish.

    A listener that raises, or a coroutine listener that fails, is reported
    on "error". With nobody listening for "error" the failure is logged with
    its traceback instead of being raised into the emitter.
    """

    def __init__(self, owner: Optional[str] = None, loop=None):
        super().__init__(loop=loop)
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__} for {owner}")
        self.owner = owner

    def emit(self, event: str, *args: Any, **kwargs: Any) -> bool:
        if event == "error" and not self.listeners("error"):
            error = args[0] if args else None
            self.logger.error(
                f"Unhandled error on {self.owner}: {error!r}",
                exc_info=error if isinstance(error, BaseException) else None,
            )
            return False
        return super().emit(event, *args, **kwargs)

    def remove_listener(self, event: str, f: Callable) -> bool:
        """Returns False if f was not listening to event."""
        if f not in self.listeners(event):
            return False
        self.logger.debug(
            f"Removing listener from event {event}: {getattr(f, '__name__', f)!s}"
        )
        super().remove_listener(event, f)
        return True
