from datetime import datetime, timedelta, timezone

import pytest

from pulse.metrics.trend import compute_trend, trend_windows


@pytest.mark.parametrize("current", [0, 5, 1000])
def test_zero_previous_is_flat(current):
    trend = compute_trend(current, 0)
    assert trend.icon == "flat"
    assert trend.amount_text == "0%"


def test_direction_and_unsigned_amount():
    down = compute_trend(100, 200)
    assert down.icon == "down"
    assert down.amount_text == "50.0%"

    up = compute_trend(200, 100)
    assert up.icon == "up"
    assert up.amount_text == "100.0%"


def test_signed_amount_keeps_sign():
    assert compute_trend(75, 100, signed=True).amount_text == "-25.0%"
    assert compute_trend(125, 100, signed=True).amount_text == "25.0%"


def test_tiny_change_is_flat():
    trend = compute_trend(100.05, 100)
    assert trend.icon == "flat"


def test_windows_start_at_day_boundaries_in_now_zone():
    zone = timezone(timedelta(hours=-5))
    now = datetime(2024, 1, 17, 15, 30, tzinfo=zone)
    windows = trend_windows(now)
    assert windows.previous_start == datetime(2024, 1, 3, tzinfo=zone)
    assert windows.current_start == datetime(2024, 1, 10, tzinfo=zone)
    assert windows.end == now
    assert windows.in_previous(datetime(2024, 1, 9, 23, 59, tzinfo=zone))
    assert windows.in_current(datetime(2024, 1, 10, tzinfo=zone))
    assert not windows.in_current(now)
