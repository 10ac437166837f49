"""Tests for the half-life trend weight filter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

import pytest

from nutritrend.tracking.trend import (
    MIN_DAY_GAP,
    compute_effective_alpha,
    compute_trend_series,
    day_gap,
    estimate_daily_calorie_balance,
    estimate_weekly_change,
    recompute_from_date,
    update_trend,
)


@dataclass
class Entry:
    entry_id: str
    date: date
    weight_kg: float
    trend_weight_kg: Optional[float] = None


class TestEffectiveAlpha:
    """Tests for compute_effective_alpha."""

    def test_one_half_life(self) -> None:
        """Seven days apart gives exactly half weight to the new entry."""
        assert compute_effective_alpha(7) == pytest.approx(0.5)

    def test_two_half_lives(self) -> None:
        assert compute_effective_alpha(14) == pytest.approx(0.75)

    def test_daily(self) -> None:
        """Daily alpha is 1 - 2^(-1/7), about 0.0943."""
        assert compute_effective_alpha(1) == pytest.approx(1 - 2 ** (-1 / 7))
        assert compute_effective_alpha(1) == pytest.approx(0.0943, abs=1e-4)

    def test_custom_half_life(self) -> None:
        assert compute_effective_alpha(10, half_life_days=10) == pytest.approx(0.5)

    def test_large_gap_approaches_one(self) -> None:
        assert compute_effective_alpha(70) > 0.999


class TestDayGap:
    """Tests for day_gap."""

    def test_calendar_days(self) -> None:
        assert day_gap(date(2024, 1, 1), date(2024, 1, 4)) == 3.0

    def test_same_day_clamped(self) -> None:
        """Same-day entries still move the trend slightly."""
        assert day_gap(date(2024, 1, 1), date(2024, 1, 1)) == MIN_DAY_GAP


class TestUpdateTrend:
    """Tests for update_trend."""

    def test_weekly_gap_is_midpoint(self) -> None:
        assert update_trend(80.0, 84.0, gap_days=7) == pytest.approx(82.0)

    def test_longer_gap_moves_further(self) -> None:
        daily = update_trend(80.0, 82.0, gap_days=1)
        three_day = update_trend(80.0, 82.0, gap_days=3)
        assert 80.0 < daily < three_day < 82.0

    def test_tiny_gap_barely_moves(self) -> None:
        result = update_trend(80.0, 90.0, gap_days=MIN_DAY_GAP)
        assert result > 80.0
        assert result == pytest.approx(80.0, abs=0.02)


class TestComputeTrendSeries:
    """Tests for compute_trend_series."""

    def test_empty(self) -> None:
        assert compute_trend_series([]) == []

    def test_first_trend_equals_weight(self) -> None:
        series = compute_trend_series([(date(2024, 1, 1), 80.0)])
        assert series[0].trend_weight_kg == 80.0

    def test_weekly_example(self) -> None:
        series = compute_trend_series(
            [(date(2025, 1, 1), 80.0), (date(2025, 1, 8), 84.0)]
        )
        assert [p.trend_weight_kg for p in series] == pytest.approx([80.0, 82.0])

    def test_constant_weight_stays_flat(self) -> None:
        start = date(2024, 1, 1)
        series = compute_trend_series(
            [(start + timedelta(days=i), 75.0) for i in range(10)]
        )
        assert all(p.trend_weight_kg == pytest.approx(75.0) for p in series)

    def test_gap_invariance(self) -> None:
        """One 14-day gap equals two consecutive 7-day gaps at the same weight."""
        start = date(2024, 1, 1)
        direct = compute_trend_series(
            [(start, 80.0), (start + timedelta(days=14), 70.0)]
        )
        stepped = compute_trend_series(
            [
                (start, 80.0),
                (start + timedelta(days=7), 70.0),
                (start + timedelta(days=14), 70.0),
            ]
        )
        assert direct[-1].trend_weight_kg == pytest.approx(72.5)
        assert stepped[-1].trend_weight_kg == pytest.approx(direct[-1].trend_weight_kg)

    def test_trend_lags_noise(self) -> None:
        """Trend stays between the extremes of noisy weights."""
        start = date(2024, 1, 1)
        weights = [80.0, 81.0, 79.5, 80.5, 79.0, 81.5]
        series = compute_trend_series(
            [(start + timedelta(days=i), w) for i, w in enumerate(weights)]
        )
        for point in series:
            assert min(weights) <= point.trend_weight_kg <= max(weights)


class TestRecomputeFromDate:
    """Tests for recompute_from_date."""

    def _entries(self) -> list[Entry]:
        start = date(2024, 1, 1)
        series = compute_trend_series(
            [(start + timedelta(days=i), 80.0 + i * 0.1) for i in range(5)]
        )
        return [
            Entry(f"e{i}", p.date, p.weight_kg, p.trend_weight_kg)
            for i, p in enumerate(series)
        ]

    def test_after_last_entry_is_noop(self) -> None:
        assert recompute_from_date(self._entries(), date(2024, 2, 1)) == []

    def test_matches_full_recompute(self) -> None:
        entries = self._entries()
        entries[2].weight_kg = 82.0

        updates = recompute_from_date(entries, entries[2].date)
        full = compute_trend_series([(e.date, e.weight_kg) for e in entries])

        assert [entry_id for entry_id, _ in updates] == ["e2", "e3", "e4"]
        assert [t for _, t in updates] == pytest.approx(
            [p.trend_weight_kg for p in full[2:]]
        )

    def test_seed_uses_previous_trend(self) -> None:
        entries = self._entries()
        entries[1].trend_weight_kg = 90.0

        updates = recompute_from_date(entries, entries[2].date)
        expected = update_trend(90.0, entries[2].weight_kg, 1.0)
        assert updates[0][1] == pytest.approx(expected)

    def test_seed_falls_back_to_weight(self) -> None:
        entries = self._entries()
        entries[1].trend_weight_kg = None

        updates = recompute_from_date(entries, entries[2].date)
        expected = update_trend(entries[1].weight_kg, entries[2].weight_kg, 1.0)
        assert updates[0][1] == pytest.approx(expected)

    def test_from_first_entry_restarts_chain(self) -> None:
        entries = self._entries()
        entries[0].weight_kg = 85.0

        updates = recompute_from_date(entries, date(2023, 12, 1))
        assert updates[0] == ("e0", 85.0)
        assert len(updates) == 5


class TestEstimates:
    """Tests for weekly change and calorie balance estimates."""

    def test_weekly_change(self) -> None:
        assert estimate_weekly_change(80.0, 79.0, days=14) == pytest.approx(-0.5)

    def test_weekly_change_zero_days(self) -> None:
        assert estimate_weekly_change(80.0, 79.0, days=0) == 0.0

    def test_daily_balance(self) -> None:
        """Losing 0.5 kg/week is a 550 kcal/day deficit."""
        assert estimate_daily_calorie_balance(-0.5) == pytest.approx(-550.0)
