"""Tests for the activity logger."""

import logging

import pytest

from home_budget.activity import ActivityLogger, configure_logging, configure_structlog
from home_budget.activity.logger import DEFAULT_NOTIFICATION_SECONDS
from home_budget.models import (
    ActivityEventBuilder,
    ActivityEventType,
    Err,
    ErrorKind,
    NotificationType,
)


class TestActivityLogger:
    """Tests for the event feed and notifications."""

    def test_feed_is_bounded(self):
        """Oldest events fall off."""
        activity = ActivityLogger(feed_size=3)
        for i in range(5):
            activity.log(ActivityEventBuilder.record_created("task", str(i), f"Task {i}"))

        assert [e.record_id for e in activity.events] == ["2", "3", "4"]
        assert len(activity.pending_notifications) == 3

    def test_only_notify_events_queue_notifications(self):
        """Silent events are recorded but not shown."""
        activity = ActivityLogger()
        activity.log(ActivityEventBuilder.summary_load_failed("expense", Err(ErrorKind.NETWORK, "x")))
        activity.log(ActivityEventBuilder.record_created("expense", "e1", "Milk"))

        assert len(activity.events) == 2
        notifications = activity.drain_notifications()
        assert [n.type for n in notifications] == [NotificationType.SUCCESS]
        assert notifications[0].duration == DEFAULT_NOTIFICATION_SECONDS
        assert activity.drain_notifications() == []

    def test_undo_notification_lasts_grace_period(self):
        """The undo toast stays up as long as undo is possible."""
        activity = ActivityLogger()
        activity.log(ActivityEventBuilder.undo_available("expense", "e1", "Milk", 3.0))
        assert activity.pending_notifications[0].duration == 3.0

    def test_failures_are_errors(self):
        """Mutation failures notify as errors."""
        activity = ActivityLogger()
        activity.mutation_failed("income", "delete", Err(ErrorKind.SERVER, "boom", 500), "i1")
        assert activity.notifications_of(NotificationType.ERROR)
        assert activity.events[0].event_type is ActivityEventType.MUTATION_FAILED

    def test_listener_failure_does_not_raise(self):
        """A broken listener is logged; later listeners still run."""
        activity = ActivityLogger()
        seen = []

        def broken(event):
            raise RuntimeError("listener bug")

        activity.subscribe(broken)
        activity.subscribe(seen.append)
        activity.system_error("boom", "details")

        assert len(seen) == 1

    def test_unsubscribe(self):
        """An unsubscribed listener is not called."""
        activity = ActivityLogger()
        seen = []
        unsubscribe = activity.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        activity.system_error("boom", "details")
        assert seen == []


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    root.setLevel(level)
    root.handlers[:] = handlers


class TestLoggingSetup:
    """Tests for structlog and root logger configuration."""

    def test_structlog_setup_leaves_root_logger_alone(self, root_logger):
        """Configuring structlog does not touch the host's logging."""
        root_logger.setLevel(logging.CRITICAL)
        handlers = list(root_logger.handlers)

        configure_structlog(dev_mode=True)

        assert root_logger.level == logging.CRITICAL
        assert root_logger.handlers == handlers

    def test_configure_logging_sets_root_level(self, root_logger):
        """The explicit setup applies the requested level."""
        configure_logging(level="debug", dev_mode=False)
        assert root_logger.level == logging.DEBUG
