"""Unit tests for logging setup and the package's log records."""

import logging
import logging.handlers
from datetime import timedelta

import pytest

from calendarkit.codec import parse_ics
from calendarkit.utils.logging import VERBOSE, AutoColoredFormatter, get_log_level, setup_logging

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestLogLevels:
    """Level names, including the custom VERBOSE level."""

    @pytest.mark.parametrize(
        "name,expected",
        [("debug", logging.DEBUG), ("VERBOSE", VERBOSE), ("Info", logging.INFO), ("ERROR", logging.ERROR)],
    )
    def test_get_log_level(self, name, expected):
        assert get_log_level(name) == expected

    def test_unknown_level_raises(self):
        with pytest.raises(AttributeError):
            get_log_level("LOUD")

    def test_verbose_sits_between_debug_and_info(self):
        assert logging.DEBUG < VERBOSE < logging.INFO
        assert logging.getLevelName(VERBOSE) == "VERBOSE"


class TestSetupLogging:
    """Handler configuration of the calendarkit logger."""

    def test_console_handler_level(self):
        logger = setup_logging("WARNING")

        assert logger.name == "calendarkit"
        assert not logger.propagate
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, AutoColoredFormatter)

    def test_debug_mode_wins(self):
        logger = setup_logging("ERROR", debug_mode=True)

        assert logger.handlers[0].level == logging.DEBUG

    def test_environment_level_override(self, monkeypatch):
        monkeypatch.setenv("CALENDARKIT_LOG_LEVEL", "verbose")

        logger = setup_logging("ERROR")

        assert logger.handlers[0].level == VERBOSE

    def test_environment_debug_flag(self, monkeypatch):
        monkeypatch.setenv("CALENDARKIT_DEBUG", "true")

        logger = setup_logging("ERROR")

        assert logger.handlers[0].level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging("LOUD")

        assert logger.handlers[0].level == logging.INFO

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging("INFO")
        logger = setup_logging("INFO")

        assert len(logger.handlers) == 1

    def test_log_file_gets_rotating_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "calendarkit.log"

        logger = setup_logging("INFO", log_file=log_file)
        logger.debug("written to file only")
        for handler in logger.handlers:
            handler.flush()

        file_handlers = [
            h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        assert "written to file only" in log_file.read_text(encoding="utf-8")

    def test_logger_verbose_method(self, caplog):
        logger = logging.getLogger("calendarkit.test")

        with caplog.at_level(VERBOSE, logger="calendarkit"):
            logger.verbose("expanded %d occurrences", 3)  # type: ignore[attr-defined]

        assert "expanded 3 occurrences" in caplog.text


class TestColoredFormatter:
    def test_colors_disabled(self):
        formatter = AutoColoredFormatter("%(levelname)s %(message)s", enable_colors=False)
        record = logging.LogRecord("calendarkit", logging.ERROR, __file__, 1, "boom", None, None)

        assert formatter.format(record) == "ERROR boom"


class TestPackageLogRecords:
    """Records emitted by library operations."""

    def test_skipped_ics_event_logs_warning(self, caplog):
        text = (
            "BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//x//x//EN\n"
            "BEGIN:VEVENT\nUID:no-summary\nDTSTART:20251029T090000Z\nEND:VEVENT\n"
            "END:VCALENDAR\n"
        )

        with caplog.at_level(logging.WARNING, logger="calendarkit"):
            parse_ics(text)

        assert any(
            record.levelno == logging.WARNING and "no-summary" in record.getMessage()
            for record in caplog.records
        )

    def test_occurrence_query_summary_logs_at_verbose(self, caplog, calendar, make_event, utc):
        calendar.add_event(make_event("Standup", "2025-11-01 09:00:00", 15))

        with caplog.at_level(VERBOSE, logger="calendarkit"):
            calendar.events_between(utc("2025-11-01 00:00:00"), utc("2025-11-01 23:59:59"))

        summaries = [r for r in caplog.records if r.name == "calendarkit.calendar" and r.levelno == VERBOSE]
        assert len(summaries) == 1
        assert "1 occurrences" in summaries[0].getMessage()

    def test_occurrence_query_summary_hidden_at_info(self, caplog, calendar, make_event, utc):
        calendar.add_event(make_event("Standup", "2025-11-01 09:00:00", 15))

        with caplog.at_level(logging.INFO, logger="calendarkit"):
            calendar.events_between(utc("2025-11-01 00:00:00"), utc("2025-11-01 23:59:59"))

        assert not [r for r in caplog.records if r.name == "calendarkit.calendar"]

    def test_rescheduling_cancelled_event_logs_info(self, caplog, make_event, utc):
        event = make_event("Consult", "2025-11-01 10:00:00")
        event.cancel()

        with caplog.at_level(logging.INFO, logger="calendarkit"):
            event.reschedule(utc("2025-11-02 10:00:00"), utc("2025-11-02 10:00:00") + timedelta(hours=1))

        assert "Consult" in caplog.text
