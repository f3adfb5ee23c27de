"""
Notification bus for the battle engine.

The engine publishes loot pickups, toasts and battle outcomes through a
``GameEvents`` instance so the presentation layer can react without the
engine knowing about it.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from battle_engine.core.constants import BattleResult, ToastSeverity
from battle_engine.core.logging import log_debug, log_error


class NotificationType(Enum):
    """Enumeration of the notifications the engine emits."""

    TOAST = "toast"  # Short message for the player
    COLLECT = "collect"  # An item entered the inventory
    BATTLE_OUTCOME = "battle_outcome"  # A battle reached its end


class Notification(BaseModel):
    """Base class for all notifications."""

    event_type: NotificationType = Field(
        description="The type of notification.",
    )


class ToastEvent(Notification):
    """A short message meant to be shown to the player."""

    event_type: NotificationType = Field(
        default=NotificationType.TOAST,
        description="The type of notification.",
    )
    message: str = Field(description="Text of the toast.")
    severity: ToastSeverity = Field(
        default=ToastSeverity.INFO,
        description="How the toast should be styled.",
    )


class CollectEvent(Notification):
    """An item was added to the player's inventory."""

    event_type: NotificationType = Field(
        default=NotificationType.COLLECT,
        description="The type of notification.",
    )
    item_id: str = Field(description="Identifier of the collected item.")
    qty: int = Field(default=1, description="Quantity collected.")


class BattleOutcomeEvent(Notification):
    """A battle ended."""

    event_type: NotificationType = Field(
        default=NotificationType.BATTLE_OUTCOME,
        description="The type of notification.",
    )
    result: BattleResult = Field(description="Win or loss.")
    rounds: int = Field(default=0, description="Completed enemy turns.")
    player_level: int = Field(default=1, description="Player level at the end.")


Handler = Callable[[Any], None]


class GameEvents:
    """Synchronous publish/subscribe bus keyed by notification type."""

    def __init__(self) -> None:
        self._handlers: dict[NotificationType, list[Handler]] = {}

    def on(self, event_type: NotificationType, handler: Handler) -> Callable[[], None]:
        """
        Registers a handler.

        Args:
            event_type (NotificationType): The notification to listen to.
            handler (Handler): Called with the notification instance.

        Returns:
            Callable[[], None]: A function that unregisters the handler.

        """
        self._handlers.setdefault(event_type, []).append(handler)
        return lambda: self.off(event_type, handler)

    def off(self, event_type: NotificationType, handler: Handler) -> None:
        """Unregisters a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def once(self, event_type: NotificationType, handler: Handler) -> Callable[[], None]:
        """Registers a handler that is removed after its first call."""

        def _wrapper(event: Any) -> None:
            self.off(event_type, _wrapper)
            handler(event)

        return self.on(event_type, _wrapper)

    def emit(self, event: Notification) -> None:
        """
        Delivers a notification to every handler registered for its type.

        Handler failures are logged and do not stop delivery to the
        remaining handlers.

        Args:
            event (Notification): The notification to deliver.

        """
        handlers = list(self._handlers.get(event.event_type, []))
        log_debug(
            f"Emitting {event.event_type.value}",
            {"handlers": len(handlers)},
        )
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                log_error(
                    f"Notification handler failed: {e}",
                    {
                        "event_type": event.event_type.value,
                        "handler": getattr(handler, "__name__", repr(handler)),
                    },
                )

    def clear(self, event_type: NotificationType | None = None) -> None:
        """Removes the handlers of one notification type, or all of them."""
        if event_type is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event_type, None)
