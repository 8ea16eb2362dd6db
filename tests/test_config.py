from __future__ import annotations

import logging

import pytest

from stockroom import config


@pytest.mark.parametrize("raw", ["0", "-5", "abc"])
def test_non_positive_or_malformed_window_falls_back(monkeypatch, caplog, raw):
    monkeypatch.setenv("TURNOVER_WINDOW_DAYS", raw)
    caplog.set_level(logging.WARNING, logger="stockroom.config")

    assert config._int_setting("TURNOVER_WINDOW_DAYS", 365, minimum=1) == 365
    assert "TURNOVER_WINDOW_DAYS" in caplog.text


def test_valid_setting_is_used(monkeypatch):
    monkeypatch.setenv("TRANSACTION_HISTORY_LIMIT", "30")

    assert config._int_setting("TRANSACTION_HISTORY_LIMIT", 50, minimum=1) == 30


def test_zero_allowed_when_minimum_is_zero(monkeypatch):
    monkeypatch.setenv("AGED_STOCK_THRESHOLD_DAYS", "0")

    assert config._int_setting("AGED_STOCK_THRESHOLD_DAYS", 90, minimum=0) == 0


def test_loaded_limits_are_positive():
    assert config.TRANSACTION_HISTORY_LIMIT >= 1
    assert config.TURNOVER_WINDOW_DAYS >= 1
