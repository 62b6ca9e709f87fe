"""
Routing of upstream data messages to application handlers.

Handlers are registered per action name (the ``ACTION`` key of the message
payload) and may be plain or async callables. Whatever a handler does wrong
ends up as ``Outcome.FAILURE``, which the protocol turns into a nack.
"""

import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Optional, Union

from pushlink.models.message import InboundEnvelope

ACTION_KEY = "ACTION"

logger = logging.getLogger("pushlink.dispatch")


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


HandlerResult = Union[Outcome, None, Awaitable[Optional[Outcome]]]
Handler = Callable[[InboundEnvelope], HandlerResult]


class HandlerTable:
    """Explicit mapping from action name to handler."""

    def __init__(self, handlers: Optional[dict[str, Handler]] = None):
        self._handlers: dict[str, Handler] = dict(handlers or {})

    def register(self, action: str, handler: Handler) -> None:
        self._handlers[action] = handler

    def unregister(self, action: str) -> None:
        self._handlers.pop(action, None)

    def handler(self, action: str) -> Callable[[Handler], Handler]:
        """Decorator form of register()."""
        def decorator(fn: Handler) -> Handler:
            self.register(action, fn)
            return fn
        return decorator

    def lookup(self, action: str) -> Optional[Handler]:
        return self._handlers.get(action)

    def __contains__(self, action: object) -> bool:
        return action in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


class Dispatcher:
    def __init__(self, handlers: Optional[HandlerTable] = None):
        self.handlers = handlers if handlers is not None else HandlerTable()

    async def handle_data(self, envelope: InboundEnvelope) -> Outcome:
        action = envelope.payload.get(ACTION_KEY)
        if action is None:
            return Outcome.SUCCESS

        handler = self.handlers.lookup(action)
        if handler is None:
            logger.error(f"No handler registered for action {action!r} (message {envelope.message_id})")
            return Outcome.FAILURE

        try:
            result: Any = handler(envelope)
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            logger.exception(f"Handler for action {action!r} failed on message {envelope.message_id}")
            return Outcome.FAILURE

        if result is None:
            return Outcome.SUCCESS
        return Outcome.FAILURE if result == Outcome.FAILURE else Outcome.SUCCESS
