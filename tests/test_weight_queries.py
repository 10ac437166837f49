"""Tests for weight entry storage and trend chain maintenance."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from nutritrend.tracking.queries import WeightQueries
from nutritrend.tracking.trend import compute_trend_series


def _stored_trends(conn) -> list[float]:
    return [e.trend_weight_kg for e in WeightQueries.get_history(conn)]


class TestAddWeight:
    """Tests for WeightQueries.add_weight."""

    def test_first_entry_trend_is_weight(self, conn) -> None:
        entry = WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1))
        assert entry.weight_kg == 80.0
        assert entry.trend_weight_kg == 80.0
        assert entry.entry_id

    def test_second_entry_smoothed(self, conn) -> None:
        WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1))
        entry = WeightQueries.add_weight(conn, 84.0, date(2024, 1, 8))
        assert entry.trend_weight_kg == pytest.approx(82.0)

    def test_rejects_out_of_range(self, conn) -> None:
        with pytest.raises(ValueError):
            WeightQueries.add_weight(conn, 29.9, date(2024, 1, 1))
        with pytest.raises(ValueError):
            WeightQueries.add_weight(conn, 300.1, date(2024, 1, 1))
        assert WeightQueries.get_history(conn) == []

    def test_accepts_range_bounds(self, conn) -> None:
        WeightQueries.add_weight(conn, 30.0, date(2024, 1, 1))
        WeightQueries.add_weight(conn, 300.0, date(2024, 1, 2))
        assert len(WeightQueries.get_history(conn)) == 2

    def test_same_date_updates_in_place(self, conn) -> None:
        first = WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1), notes="am")
        second = WeightQueries.add_weight(conn, 81.0, date(2024, 1, 1))

        assert second.entry_id == first.entry_id
        assert second.weight_kg == 81.0
        assert second.notes == "am"
        assert len(WeightQueries.get_history(conn)) == 1

    def test_backfill_recomputes_later_trends(self, conn) -> None:
        start = date(2024, 1, 1)
        WeightQueries.add_weight(conn, 80.0, start)
        WeightQueries.add_weight(conn, 79.0, start + timedelta(days=4))
        WeightQueries.add_weight(conn, 78.5, start + timedelta(days=6))

        # Insert between existing entries
        WeightQueries.add_weight(conn, 82.0, start + timedelta(days=2))

        expected = compute_trend_series(
            [
                (start, 80.0),
                (start + timedelta(days=2), 82.0),
                (start + timedelta(days=4), 79.0),
                (start + timedelta(days=6), 78.5),
            ]
        )
        assert _stored_trends(conn) == pytest.approx(
            [p.trend_weight_kg for p in expected]
        )

    def test_backfill_before_first_entry(self, conn) -> None:
        WeightQueries.add_weight(conn, 80.0, date(2024, 1, 10))
        WeightQueries.add_weight(conn, 90.0, date(2024, 1, 3))

        history = WeightQueries.get_history(conn)
        assert history[0].trend_weight_kg == 90.0
        assert history[1].trend_weight_kg == pytest.approx(85.0)

    def test_custom_half_life(self, conn) -> None:
        WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1), half_life_days=3)
        entry = WeightQueries.add_weight(conn, 84.0, date(2024, 1, 4), half_life_days=3)
        assert entry.trend_weight_kg == pytest.approx(82.0)


class TestUpdateAndDelete:
    """Tests for editing and deleting entries."""

    def test_update_weight_recomputes(self, conn) -> None:
        first = WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1))
        WeightQueries.add_weight(conn, 84.0, date(2024, 1, 8))

        WeightQueries.update_weight(conn, first.entry_id, weight_kg=76.0)
        assert _stored_trends(conn) == pytest.approx([76.0, 80.0])

    def test_update_missing_entry(self, conn) -> None:
        with pytest.raises(ValueError):
            WeightQueries.update_weight(conn, "missing", weight_kg=80.0)

    def test_update_of_vanishing_entry_raises(self, conn) -> None:
        entry = WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1))
        conn.execute(
            """
            CREATE TRIGGER drop_edited_entry AFTER UPDATE OF weight_kg ON weight_entries
            BEGIN
                DELETE FROM weight_entries WHERE entry_id = NEW.entry_id;
            END
            """
        )
        with pytest.raises(RuntimeError):
            WeightQueries.update_weight(conn, entry.entry_id, weight_kg=79.0)

    def test_delete_recomputes_following(self, conn) -> None:
        WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1))
        WeightQueries.add_weight(conn, 90.0, date(2024, 1, 8))
        WeightQueries.add_weight(conn, 90.0, date(2024, 1, 15))

        assert WeightQueries.delete_entry_by_date(conn, date(2024, 1, 8)) is True

        # 14-day gap from the first entry
        assert _stored_trends(conn) == pytest.approx([80.0, 87.5])

    def test_delete_first_entry_restarts_chain(self, conn) -> None:
        WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1))
        WeightQueries.add_weight(conn, 84.0, date(2024, 1, 8))

        WeightQueries.delete_entry_by_date(conn, date(2024, 1, 1))
        assert _stored_trends(conn) == pytest.approx([84.0])

    def test_delete_missing_returns_false(self, conn) -> None:
        assert WeightQueries.delete_entry_by_date(conn, date(2024, 1, 1)) is False


class TestRecomputeTrends:
    """Tests for bulk recompute."""

    def test_repairs_stale_values(self, conn) -> None:
        start = date(2024, 1, 1)
        for i, weight in enumerate([80.0, 80.4, 79.8, 79.5]):
            WeightQueries.add_weight(conn, weight, start + timedelta(days=i))
        correct = _stored_trends(conn)

        conn.execute("UPDATE weight_entries SET trend_weight_kg = 0")
        conn.commit()

        assert WeightQueries.recompute_trends(conn) == 4
        assert _stored_trends(conn) == pytest.approx(correct)

    def test_recompute_from_date(self, conn) -> None:
        start = date(2024, 1, 1)
        for i in range(4):
            WeightQueries.add_weight(conn, 80.0, start + timedelta(days=i))

        assert WeightQueries.recompute_trends(conn, start + timedelta(days=2)) == 2

    def test_empty_history(self, conn) -> None:
        assert WeightQueries.recompute_trends(conn) == 0


class TestReaders:
    """Tests for history and lookup queries."""

    def test_history_is_chronological(self, conn) -> None:
        for day in (5, 1, 3):
            WeightQueries.add_weight(conn, 80.0, date(2024, 1, day))
        dates = [e.date.day for e in WeightQueries.get_history(conn)]
        assert dates == [1, 3, 5]

    def test_history_last_n(self, conn) -> None:
        for day in range(1, 6):
            WeightQueries.add_weight(conn, 80.0, date(2024, 1, day))
        dates = [e.date.day for e in WeightQueries.get_history(conn, days=2)]
        assert dates == [4, 5]

    def test_history_date_range(self, conn) -> None:
        for day in range(1, 6):
            WeightQueries.add_weight(conn, 80.0, date(2024, 1, day))
        history = WeightQueries.get_history(
            conn, start_date=date(2024, 1, 2), end_date=date(2024, 1, 3)
        )
        assert [e.date.day for e in history] == [2, 3]

    def test_latest_and_by_date(self, conn) -> None:
        assert WeightQueries.get_latest(conn) is None
        WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1))
        WeightQueries.add_weight(conn, 81.0, date(2024, 1, 2))

        assert WeightQueries.get_latest(conn).weight_kg == 81.0
        assert WeightQueries.get_entry_by_date(conn, date(2024, 1, 1)).weight_kg == 80.0
        assert WeightQueries.get_entry_by_date(conn, date(2024, 1, 9)) is None

    def test_trend_at_date(self, conn) -> None:
        WeightQueries.add_weight(conn, 80.0, date(2024, 1, 1))
        assert WeightQueries.get_trend_at_date(conn, date(2024, 1, 5)) == 80.0
        assert WeightQueries.get_trend_at_date(conn, date(2023, 12, 31)) is None

    def test_count_days_weighed(self, conn) -> None:
        for day in (1, 2, 5):
            WeightQueries.add_weight(conn, 80.0, date(2024, 1, day))
        assert WeightQueries.count_days_weighed(conn, date(2024, 1, 1), date(2024, 1, 3)) == 2
