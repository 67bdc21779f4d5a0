from app.domain import HourlyObservation
from app.recommendation_engine import classify, merge_windows, select_best_window


def _hour(hour: int, temp: float = 25.0, humidity: float = 50.0, wind: float = 10.0):
    return HourlyObservation(
        hour=hour,
        temperature_c=temp,
        weather_code=0,
        humidity_pct=humidity,
        wind_speed_kmh=wind,
        timestamp=f"2024-04-10T{hour:02d}:00",
    )


def test_isolated_ideal_hours_never_form_windows():
    hours = [_hour(6), _hour(9), _hour(12), _hour(15)]
    assert merge_windows(hours) == []


def test_two_hour_gap_splits_windows():
    hours = [_hour(9), _hour(10), _hour(12), _hour(13)]
    windows = merge_windows(hours)
    assert [(w.start_hour, w.end_hour) for w in windows] == [(9, 10), (12, 13)]


def test_trailing_run_is_closed():
    hours = [_hour(5), _hour(15), _hour(16), _hour(17)]
    windows = merge_windows(hours)
    assert [(w.start_hour, w.end_hour) for w in windows] == [(15, 17)]


def test_averages_round_half_up():
    hours = [_hour(9, temp=20.0, humidity=50.0, wind=10.0), _hour(10, temp=21.0, humidity=51.0, wind=11.0)]
    (window,) = merge_windows(hours)
    # means are 20.5 / 50.5 / 10.5
    assert (window.avg_temp, window.avg_humidity, window.avg_wind) == (21, 51, 11)


def test_averages_over_three_hours():
    hours = [_hour(9, temp=21.0, wind=6.0), _hour(10, temp=24.0, wind=7.0), _hour(11, temp=28.0, wind=9.0)]
    (window,) = merge_windows(hours)
    assert window.avg_temp == 24  # 24.33
    assert window.avg_wind == 7  # 7.33


def test_every_window_spans_at_least_one_hour():
    hours = [_hour(h) for h in (5, 6, 8, 10, 11, 12, 14, 16, 17)]
    windows = merge_windows(hours)
    assert windows
    assert all(w.end_hour - w.start_hour >= 1 for w in windows)


def test_sorting_sorted_input_changes_nothing():
    day = [_hour(h) for h in (6, 7, 9, 10, 11, 15)]
    resorted = sorted(day, key=lambda h: h.hour)
    assert classify(resorted) == classify(day)


def test_best_window_requires_strictly_wider_span():
    windows = merge_windows([_hour(h) for h in (5, 6, 7, 10, 11, 12, 15, 16, 17)])
    assert len(windows) == 3
    assert select_best_window(windows) is windows[0]
    assert select_best_window([]) is None


def test_repeated_hour_merges_into_one_window():
    (window,) = merge_windows([_hour(9, temp=24.0), _hour(9, temp=26.0)])
    assert window.start_hour == window.end_hour == 9
    assert window.span == 0
    assert window.avg_temp == 25


def test_huge_finite_values_average_without_overflow():
    hours = [_hour(9, wind=1e308), _hour(10, wind=1e308)]
    (window,) = merge_windows(hours)
    assert window.avg_wind == int(1e308)

    rec = classify(hours)
    assert rec.best_window == window
