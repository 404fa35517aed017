"""
Activity Logger

DESIGN DECISION: Every mutation and every failure of the data layer is
logged. This provides:
1. Debugging capability
2. A feed of what happened, in order
3. The transient notifications a UI shows after an action

The activity logger:
- Always writes the event to the structured log
- Keeps a bounded in-memory feed (oldest events fall off)
- Queues a Notification for events flagged notify
- Never raises into the caller if a listener fails
"""

import logging
from collections import deque
from typing import Callable, Optional

import structlog

from home_budget.config import get_settings
from home_budget.models import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
    Err,
    Notification,
    NotificationType,
)


DEFAULT_NOTIFICATION_SECONDS = 8.0


def configure_structlog(dev_mode: Optional[bool] = None) -> None:
    """
    Configure structlog over the stdlib logging module.

    JSON lines in production, a readable console renderer in dev mode.
    Leaves the stdlib root logger alone.
    """
    if dev_mode is None:
        dev_mode = get_settings().app.dev_mode

    renderer = (
        structlog.dev.ConsoleRenderer()
        if dev_mode
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: Optional[str] = None, dev_mode: Optional[bool] = None) -> None:
    """
    Application entry point setup: root logger level and handler, then
    structlog. Libraries embedding the package should not call this.
    """
    level = (level or get_settings().app.log_level).upper()
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)
    configure_structlog(dev_mode)


# Configure structlog for local logging
configure_structlog()


ActivityListener = Callable[[ActivityEvent], None]


class ActivityLogger:
    """
    Central activity logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory feed the UI drains as notifications
    """

    def __init__(self, feed_size: Optional[int] = None):
        """
        Initialize activity logger.

        Args:
            feed_size: Events and notifications kept in memory.
                       Defaults to the configured activity_feed_size.
        """
        size = feed_size or get_settings().app.activity_feed_size
        self._events: deque[ActivityEvent] = deque(maxlen=size)
        self._notifications: deque[Notification] = deque(maxlen=size)
        self._listeners: list[ActivityListener] = []
        self._logger = structlog.get_logger(__name__)

    def log(self, event: ActivityEvent) -> None:
        """
        Log an activity event.

        Always logs locally; queues a notification if the event asks for one.
        """
        log_dict = event.to_log_dict()

        if event.severity is ActivitySeverity.ERROR:
            self._logger.error("activity_event", **log_dict)
        elif event.severity is ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity is ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

        self._events.append(event)
        if event.notify:
            self._notifications.append(self._to_notification(event))

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "activity_listener_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )

    @staticmethod
    def _to_notification(event: ActivityEvent) -> Notification:
        duration = event.details.get("grace_seconds", DEFAULT_NOTIFICATION_SECONDS)
        return Notification(
            event_id=event.event_id,
            type=event.notification_type,
            message=event.message,
            timestamp=event.timestamp,
            duration=duration,
        )

    # -------------------------------------------------------------------------
    # Feed
    # -------------------------------------------------------------------------

    @property
    def events(self) -> list[ActivityEvent]:
        return list(self._events)

    @property
    def pending_notifications(self) -> list[Notification]:
        return list(self._notifications)

    def drain_notifications(self) -> list[Notification]:
        """Return queued notifications and clear the queue."""
        drained = list(self._notifications)
        self._notifications.clear()
        return drained

    def notifications_of(self, kind: NotificationType) -> list[Notification]:
        return [n for n in self._notifications if n.type is kind]

    def subscribe(self, listener: ActivityListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Shortcuts
    # -------------------------------------------------------------------------

    def mutation_failed(
        self,
        resource: str,
        action: str,
        err: Err,
        record_id: Optional[str] = None,
    ) -> None:
        self.log(ActivityEventBuilder.mutation_failed(resource, action, err, record_id))

    def system_error(self, error_type: str, error_message: str, **details) -> None:
        self.log(ActivityEventBuilder.system_error(error_type, error_message, details))
