"""Tests for configuration loading and validation."""

import pytest

from salon_scheduler.config import (
    AppConfig,
    FillerConfig,
    NotificationConfig,
    ScheduleConfig,
    _safe_bool,
    _safe_float,
    _safe_int,
    _validate_config,
)


def make_schedule(**overrides) -> ScheduleConfig:
    values = dict(
        work_start="09:00",
        work_end="18:00",
        break_between=15,
        booking_days_ahead=60,
        cancel_hours_before=24,
        slot_granularity=30,
        timezone="Europe/Vilnius",
    )
    values.update(overrides)
    schedule = ScheduleConfig.__new__(ScheduleConfig)
    for name, value in values.items():
        object.__setattr__(schedule, name, value)
    return schedule


def make_config(schedule=None, filler=None) -> AppConfig:
    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "schedule", schedule or ScheduleConfig())
    object.__setattr__(config, "filler", filler or FillerConfig())
    object.__setattr__(config, "notifications", NotificationConfig())
    object.__setattr__(config, "log_level", "INFO")
    object.__setattr__(config, "business_name", "test")
    return config


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_start_after_end(self):
        config = make_config(schedule=make_schedule(work_start="18:00", work_end="09:00"))
        with pytest.raises(ValueError, match="WORK_START"):
            _validate_config(config)

    def test_malformed_clock(self):
        config = make_config(schedule=make_schedule(work_end="6pm"))
        with pytest.raises(ValueError, match="WORK_END"):
            _validate_config(config)

    def test_negative_break(self):
        config = make_config(schedule=make_schedule(break_between=-5))
        with pytest.raises(ValueError, match="BREAK_BETWEEN"):
            _validate_config(config)

    def test_zero_horizon(self):
        config = make_config(schedule=make_schedule(booking_days_ahead=0))
        with pytest.raises(ValueError, match="BOOKING_DAYS_AHEAD"):
            _validate_config(config)

    def test_zero_granularity(self):
        config = make_config(schedule=make_schedule(slot_granularity=0))
        with pytest.raises(ValueError, match="SLOT_GRANULARITY"):
            _validate_config(config)

    def test_cancel_probability_above_one(self):
        config = make_config(filler=FillerConfig(cancel_probability=1.5))
        with pytest.raises(ValueError, match="FILLER_CANCEL_PROBABILITY"):
            _validate_config(config)


class TestEnvParsing:
    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_bad_value(self, monkeypatch):
        monkeypatch.setenv("SALON_TEST_INT", "abc")
        with pytest.raises(ValueError, match="SALON_TEST_INT"):
            _safe_int("SALON_TEST_INT", "1")

    def test_safe_float_parsing(self):
        assert _safe_float("NONEXISTENT_VAR_12345", "0.25") == pytest.approx(0.25)

    @pytest.mark.parametrize("raw,expected", [("true", True), ("YES", True), ("0", False), ("off", False)])
    def test_safe_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SALON_TEST_BOOL", raw)
        assert _safe_bool("SALON_TEST_BOOL", "true") is expected

    def test_safe_bool_bad_value(self, monkeypatch):
        monkeypatch.setenv("SALON_TEST_BOOL", "maybe")
        with pytest.raises(ValueError, match="SALON_TEST_BOOL"):
            _safe_bool("SALON_TEST_BOOL", "true")
