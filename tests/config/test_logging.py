"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from cubectl.config.logging import configure_logging, render_cube_values
from cubectl.domain.pov import POV
from cubectl.domain.types import CalcStatus
from tests.conftest import entity, member


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    cube = logging.getLogger("cubectl")
    cube_level = cube.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    cube.setLevel(cube_level)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("cubectl").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False)
        assert logging.getLogger("cubectl").level == logging.WARNING

    def test_third_party_loggers_quiet(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("sqlalchemy").level == logging.WARNING
        assert logging.getLogger("pluggy").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("cubectl.test").debug("consolidate %s", "Actual/2024/Jan")
        line = capfd.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "consolidate Actual/2024/Jan"
        assert record["level"] == "debug"
        assert record["logger"] == "cubectl.test"

    def test_structlog_events(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("cubectl.progress").warning("blocking.stall", seconds=30.0)
        record = json.loads(capfd.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "blocking.stall"
        assert record["seconds"] == 30.0

    def test_third_party_debug_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("sqlalchemy.engine").debug("SELECT 1")
        assert capfd.readouterr().err == ""

    def test_idempotent_calls(self) -> None:
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1

    def test_backend_records_carry_bound_pov(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        pov = POV(
            member("Scenario", 0, "Actual"),
            member("Year", 1, "2024"),
            member("Period", 0, "Jan"),
            entity(1, "UK", 0, "Group"),
        )
        with structlog.contextvars.bound_contextvars(operation="consolidate", pov=pov):
            logging.getLogger("cubectl.infrastructure.sandbox").debug("consolidate journaled")
        record = json.loads(capfd.readouterr().err.strip().splitlines()[-1])
        assert record["operation"] == "consolidate"
        assert record["pov"] == "Actual/2024/Jan/Group.UK"

    def test_json_tracebacks_are_structured(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        try:
            raise RuntimeError("engine gone")
        except RuntimeError:
            structlog.get_logger("cubectl.test").exception("engine.failed")
        record = json.loads(capfd.readouterr().err.strip().splitlines()[-1])
        assert record["exception"][0]["exc_type"] == "RuntimeError"


class TestRenderCubeValues:
    def test_pov_and_member_become_text(self) -> None:
        event = render_cube_values(
            None,
            "debug",
            {
                "event": "pov.skip",
                "pov": POV(
                    member("Scenario", 1, "Budget"),
                    member("Year", 1, "2024"),
                    member("Period", 2, "Mar"),
                ),
                "value": member("Value", 1, "USD"),
            },
        )
        assert event == {"event": "pov.skip", "pov": "Budget/2024/Mar", "value": "USD"}

    def test_status_becomes_labels(self) -> None:
        status = CalcStatus.NEEDS_CALCULATION | CalcStatus.LOCKED
        event = render_cube_values(None, "debug", {"event": "pov.skip", "status": status})
        assert event["status"] == ["needs_calculation", "locked"]

    def test_plain_values_untouched(self) -> None:
        event = render_cube_values(None, "info", {"event": "subcube.complete", "executed": 2})
        assert event == {"event": "subcube.complete", "executed": 2}
