"""Lifecycle notifications for form-mcp.

Subscribers learn when a form becomes a tool and when it stops being one.

Architecture:
- HookRegistry is the CORE implementation
- The decorator (@hooks.on) and LifecycleSubscriber are convenience wrappers
- Everything goes through HookRegistry
"""

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class HookEvent(str, Enum):
    """Available lifecycle events."""

    FORM_REGISTERED = "form:registered"
    FORM_UNREGISTERED = "form:unregistered"


@dataclass
class FormLifecycleEventData:
    """Carried by both lifecycle events."""

    form: Any  # bs4 Tag of the <form>
    tool_name: str
    timestamp: datetime = field(default_factory=datetime.now)


class HookRegistry:
    """Central registry for lifecycle handlers.

    Handlers may be plain functions or coroutines.

    Usage:
        hooks = HookRegistry()

        @hooks.on('form:registered')
        async def log_form(event):
            print(f"Tool: {event.tool_name}")

        # Or direct registration
        hooks.register_handler('form:unregistered', my_handler)
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {
            event.value: [] for event in HookEvent
        }

    def on(self, hook_name: str):
        """Decorator for registering hook handlers."""

        def decorator(func: Callable) -> Callable:
            self.register_handler(hook_name, func)
            return func

        return decorator

    def register_handler(self, hook_name: str, handler: Callable) -> None:
        """Register a hook handler.

        Raises:
            ValueError: If hook_name is not valid
        """
        hook_name = getattr(hook_name, "value", hook_name)
        if hook_name not in self._handlers:
            valid_hooks = [e.value for e in HookEvent]
            raise ValueError(
                f"Invalid hook name '{hook_name}'. Valid hooks: {valid_hooks}"
            )
        self._handlers[hook_name].append(handler)

    def remove_handler(self, hook_name: str, handler: Callable) -> None:
        hook_name = getattr(hook_name, "value", hook_name)
        self._handlers[hook_name] = [
            h for h in self._handlers.get(hook_name, []) if h is not handler
        ]

    async def trigger(self, hook_name: str, event_data: FormLifecycleEventData) -> None:
        """Run every handler for a hook; handler errors are logged, not raised."""
        hook_name = getattr(hook_name, "value", hook_name)
        for handler in list(self._handlers.get(hook_name, [])):
            try:
                result = handler(event_data)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Hook '{hook_name}' raised exception: {e}")

    def has_handlers(self, hook_name: str) -> bool:
        hook_name = getattr(hook_name, "value", hook_name)
        return len(self._handlers.get(hook_name, [])) > 0

    def clear(self) -> None:
        """Clear all handlers (useful for testing)."""
        for hook_name in self._handlers:
            self._handlers[hook_name] = []


class LifecycleSubscriber:
    """Base class for stateful subscribers.

    Override the methods for the events you care about, then pass the
    instance to ``subscribe``.

    Usage:
        class Audit(LifecycleSubscriber):
            async def form_registered(self, event):
                print(f"+ {event.tool_name}")

        Audit().subscribe(handle.hooks)
    """

    async def form_registered(self, event: FormLifecycleEventData) -> None:
        pass

    async def form_unregistered(self, event: FormLifecycleEventData) -> None:
        pass

    def subscribe(self, hooks: HookRegistry) -> None:
        hooks.register_handler(HookEvent.FORM_REGISTERED.value, self.form_registered)
        hooks.register_handler(HookEvent.FORM_UNREGISTERED.value, self.form_unregistered)
