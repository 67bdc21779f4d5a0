"""Deterministic laundry recommendation logic.

This module turns a normalized ObservationSet (see forecast_service) into a
Recommendation: rain check, ideal-hour filter, window merge, best-window
selection and message rendering. Everything here is a pure function of its
arguments and total over every input, including an empty list.
"""

from __future__ import annotations

from math import floor, fsum
from typing import Sequence

from app.domain import (
    IDEAL_TEMP_RANGE_C,
    MAX_HUMIDITY_PCT,
    MESSAGES,
    MIN_WIND_KMH,
    MIN_WINDOW_HOURS,
    HourlyObservation,
    IdealWindow,
    Recommendation,
    Verdict,
    is_clear_code,
    is_rain_code,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(floor(value + 0.5))


def _mean(values: Sequence[float]) -> float:
    """Arithmetic mean of a non-empty sequence; stays finite for finite inputs."""
    n = len(values)
    return fsum(v / n for v in values)


def format_hour(hour: int) -> str:
    """Render an hour of day as a 12-hour clock label, e.g. 14 -> "2:00 PM"."""
    if hour == 12:
        return "12:00 PM"
    if hour > 12:
        return f"{hour - 12}:00 PM"
    return f"{hour}:00 AM"


def has_rain(observations: Sequence[HourlyObservation]) -> bool:
    """Return True if any hour reports drizzle, rain, showers or thunder."""
    return any(is_rain_code(o.weather_code) for o in observations)


def has_clear_weather(observations: Sequence[HourlyObservation]) -> bool:
    """Return True if any hour is clear to partly cloudy."""
    return any(is_clear_code(o.weather_code) for o in observations)


def is_ideal_hour(observation: HourlyObservation) -> bool:
    """Warm, dry, breezy and clear: all four must hold."""
    low, high = IDEAL_TEMP_RANGE_C
    return (
        low <= observation.temperature_c <= high
        and observation.humidity_pct < MAX_HUMIDITY_PCT
        and observation.wind_speed_kmh > MIN_WIND_KMH
        and is_clear_code(observation.weather_code)
    )


def ideal_hours(observations: Sequence[HourlyObservation]) -> list[HourlyObservation]:
    """Return the ideal hours in their original order."""
    return [o for o in observations if is_ideal_hour(o)]


def _close_window(run: list[HourlyObservation]) -> IdealWindow:
    """Summarize a run of ideal hours into an IdealWindow."""
    return IdealWindow(
        start_hour=run[0].hour,
        end_hour=run[-1].hour,
        avg_temp=round_half_up(_mean([h.temperature_c for h in run])),
        avg_humidity=round_half_up(_mean([h.humidity_pct for h in run])),
        avg_wind=round_half_up(_mean([h.wind_speed_kmh for h in run])),
    )


def merge_windows(hours: Sequence[HourlyObservation]) -> list[IdealWindow]:
    """
    Merge an ordered run of ideal hours into windows.

    An hour joins the current run when it is at most one hour after the run's
    last member (repeated hours also join). Runs shorter than two hours are
    dropped. Single pass, one accumulator.
    """
    windows: list[IdealWindow] = []
    run: list[HourlyObservation] = []

    for h in hours:
        if run and h.hour - run[-1].hour > 1:
            if len(run) >= MIN_WINDOW_HOURS:
                windows.append(_close_window(run))
            run = []
        run.append(h)

    if len(run) >= MIN_WINDOW_HOURS:
        windows.append(_close_window(run))

    return windows


def select_best_window(windows: Sequence[IdealWindow]) -> IdealWindow | None:
    """Pick the widest window; the earliest one wins ties."""
    best: IdealWindow | None = None
    for w in windows:
        # only a strictly wider window replaces the current best
        if best is None or w.span > best.span:
            best = w
    return best


def classify(observations: Sequence[HourlyObservation]) -> Recommendation:
    """
    Pure function: evaluate a day's observations and return a Recommendation.

    Branches are checked in a fixed order: rain, ideal windows, any clear
    hour, then poor weather.
    """
    if has_rain(observations):
        return Recommendation(message=MESSAGES[Verdict.RAIN], verdict=Verdict.RAIN, windows=[])

    windows = merge_windows(ideal_hours(observations))
    best = select_best_window(windows)
    if best is not None:
        message = MESSAGES[Verdict.IDEAL].format(
            start=format_hour(best.start_hour),
            end=format_hour(best.end_hour),
        )
        return Recommendation(message=message, verdict=Verdict.IDEAL, windows=windows, best_window=best)

    if has_clear_weather(observations):
        return Recommendation(message=MESSAGES[Verdict.ACCEPTABLE], verdict=Verdict.ACCEPTABLE, windows=[])

    return Recommendation(message=MESSAGES[Verdict.POOR], verdict=Verdict.POOR, windows=[])
