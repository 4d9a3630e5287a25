"""Unit tests for observability logging helpers."""

from __future__ import annotations

import logging

import structlog

from schedcore.observability.logging import JsonLoggerFactory, get_logger
from schedcore.observability.logging.processors import ScheduledEventProcessor
from schedcore.scheduling import ScheduledEvent


class TestScheduledEventProcessor:
    def test_string_event_id_untouched(self) -> None:
        out = ScheduledEventProcessor()(None, "info", {"event": "x", "event_id": "abc"})
        assert out["event_id"] == "abc"

    def test_event_instance_collapsed_to_identifier(self) -> None:
        event = ScheduledEvent.with_action(lambda: None)
        event.hourly().assign_unique_identifier("hourly-job")
        out = ScheduledEventProcessor()(None, "info", {"event": "x", "event_id": event})
        assert out["event_id"] == "hourly-job"

    def test_missing_event_id(self) -> None:
        assert ScheduledEventProcessor()(None, "info", {"event": "x"}) == {"event": "x"}


class TestGetLogger:
    def test_binds_initial_values(self) -> None:
        with structlog.testing.capture_logs() as logs:
            get_logger("schedcore.test", component="scheduler").info("tick", count=1)
        assert logs == [{"event": "tick", "count": 1, "component": "scheduler", "log_level": "info"}]


class TestJsonLoggerFactory:
    def test_configure_installs_single_handler(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            JsonLoggerFactory.configure(level=logging.DEBUG)
            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
            structlog.reset_defaults()
