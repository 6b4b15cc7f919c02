"""Tests for configuration loading, validation and the request-id log filter."""

import logging
from dataclasses import replace

import pytest

from showings.config import (
    AppConfig,
    AuthConfig,
    RoutingConfig,
    SchedulingConfig,
    _safe_float,
    _safe_int,
    _validate_config,
)
from showings.logging_context import RequestIdFilter, get_request_id, set_request_id


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_negative_travel_window(self):
        config = replace(AppConfig(), scheduling=replace(SchedulingConfig(), travel_window_minutes=-1))
        with pytest.raises(ValueError, match="TRAVEL_WINDOW_MINUTES"):
            _validate_config(config)

    def test_negative_ranking_window(self):
        config = replace(AppConfig(), scheduling=replace(SchedulingConfig(), ranking_window_minutes=-5))
        with pytest.raises(ValueError, match="RANKING_WINDOW_MINUTES"):
            _validate_config(config)

    def test_zero_routing_timeout(self):
        config = replace(AppConfig(), routing=replace(RoutingConfig(), timeout_sec=0))
        with pytest.raises(ValueError, match="ROUTING_TIMEOUT_SEC"):
            _validate_config(config)

    def test_negative_min_interval(self):
        config = replace(AppConfig(), routing=replace(RoutingConfig(), min_interval_sec=-0.5))
        with pytest.raises(ValueError, match="ROUTING_MIN_INTERVAL_SEC"):
            _validate_config(config)

    def test_token_expiry_must_be_positive(self):
        config = replace(AppConfig(), auth=replace(AuthConfig(), access_token_expire_minutes=0))
        with pytest.raises(ValueError, match="ACCESS_TOKEN_EXPIRE_MINUTES"):
            _validate_config(config)

    def test_zero_windows_are_allowed(self):
        config = replace(
            AppConfig(),
            scheduling=SchedulingConfig(travel_window_minutes=0, ranking_window_minutes=0),
        )
        _validate_config(config)

    def test_config_is_frozen(self):
        with pytest.raises(AttributeError):
            AppConfig().log_level = "DEBUG"


class TestSafeParsing:
    def test_int_from_env(self, monkeypatch):
        monkeypatch.setenv("TRAVEL_WINDOW_MINUTES", "120")
        assert _safe_int("TRAVEL_WINDOW_MINUTES", "180") == 120

    def test_int_default(self, monkeypatch):
        monkeypatch.delenv("TRAVEL_WINDOW_MINUTES", raising=False)
        assert _safe_int("TRAVEL_WINDOW_MINUTES", "180") == 180

    def test_bad_int(self, monkeypatch):
        monkeypatch.setenv("TRAVEL_WINDOW_MINUTES", "three hours")
        with pytest.raises(ValueError, match="Invalid integer for TRAVEL_WINDOW_MINUTES"):
            _safe_int("TRAVEL_WINDOW_MINUTES", "180")

    def test_float_from_env(self, monkeypatch):
        monkeypatch.setenv("ROUTING_TIMEOUT_SEC", "2.5")
        assert _safe_float("ROUTING_TIMEOUT_SEC", "10.0") == 2.5

    def test_bad_float(self, monkeypatch):
        monkeypatch.setenv("ROUTING_TIMEOUT_SEC", "soon")
        with pytest.raises(ValueError, match="Invalid float for ROUTING_TIMEOUT_SEC"):
            _safe_float("ROUTING_TIMEOUT_SEC", "10.0")


class TestRequestIdFilter:
    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("showings", logging.INFO, __file__, 1, "msg", None, None)

    def test_default_request_id(self):
        record = self._record()
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == get_request_id()

    def test_explicit_request_id(self):
        assert set_request_id("req-abc123") == "req-abc123"
        record = self._record()
        RequestIdFilter().filter(record)
        assert record.request_id == "req-abc123"

    def test_generated_request_id(self):
        request_id = set_request_id()
        assert len(request_id) == 12
        assert get_request_id() == request_id
