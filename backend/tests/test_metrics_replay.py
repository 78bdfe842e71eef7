"""
tests/test_metrics_replay.py - Stage-log replay into weighted labor rates
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from hullworks.config import Settings
from hullworks.services.metrics_service import StageLogEntry, metrics_window, replay_stage_logs

T0 = datetime(2026, 6, 1, 8, 0, tzinfo=timezone.utc)


def _log(work_order_id, user_id, event, minutes, rate=0.0):
    return StageLogEntry(
        work_order_id=work_order_id,
        user_id=user_id,
        event=event,
        created_at=T0 + timedelta(minutes=minutes),
        hourly_rate=rate,
    )


class TestReplay:

    def test_no_logs_returns_none(self):
        assert replay_stage_logs([]) is None

    def test_single_start_complete_pair(self):
        wo, op = uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo, op, "START", 0, rate=30),
            _log(wo, op, "COMPLETE", 90, rate=30),
        ])
        assert result.total_hours_worked == pytest.approx(1.5)
        assert result.total_labor_cost == pytest.approx(45.0)
        assert result.weighted_average_rate == pytest.approx(30.0)
        assert result.unique_operator_count == 1

    def test_two_hours_at_thirty(self):
        wo, op = uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo, op, "START", 0, rate=30),
            _log(wo, op, "COMPLETE", 120, rate=30),
        ])
        assert result.as_dict() == {
            "weighted_average_rate": 30.0,
            "total_hours_worked": 2.0,
            "total_labor_cost": 60.0,
            "unique_operator_count": 1,
        }

    def test_two_operators_weighted_by_hours(self):
        wo_a, wo_b = uuid.uuid4(), uuid.uuid4()
        op_a, op_b = uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo_a, op_a, "START", 0, rate=30),
            _log(wo_b, op_b, "START", 0, rate=60),
            _log(wo_b, op_b, "COMPLETE", 60, rate=60),
            _log(wo_a, op_a, "COMPLETE", 120, rate=30),
        ])
        # (30*2 + 60*1) / 3
        assert result.total_hours_worked == pytest.approx(3.0)
        assert result.total_labor_cost == pytest.approx(120.0)
        assert result.weighted_average_rate == pytest.approx(40.0)
        assert result.unique_operator_count == 2

    def test_pause_accrues_and_keeps_session_open(self):
        wo, op = uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo, op, "START", 0, rate=20),
            _log(wo, op, "PAUSE", 30, rate=20),
            _log(wo, op, "COMPLETE", 60, rate=20),
        ])
        # PAUSE accrues 0.5h; COMPLETE measures from the original START (1.0h)
        assert result.total_hours_worked == pytest.approx(1.5)
        assert result.total_labor_cost == pytest.approx(30.0)

    def test_restart_overwrites_open_session(self):
        wo, op = uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo, op, "START", 0, rate=20),
            _log(wo, op, "START", 45, rate=20),
            _log(wo, op, "COMPLETE", 60, rate=20),
        ])
        assert result.total_hours_worked == pytest.approx(0.25)

    def test_orphan_events_are_ignored(self):
        wo, op = uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo, op, "COMPLETE", 10, rate=20),
            _log(wo, op, "PAUSE", 20, rate=20),
        ])
        assert result is None

    def test_close_by_other_operator_is_ignored(self):
        wo, op, other = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo, op, "START", 0, rate=20),
            _log(wo, other, "COMPLETE", 60, rate=50),
        ])
        assert result is None

    def test_rate_comes_from_the_start_event(self):
        wo, op = uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo, op, "START", 0, rate=20),
            _log(wo, op, "COMPLETE", 60, rate=99),
        ])
        assert result.total_labor_cost == pytest.approx(20.0)

    def test_zero_duration_returns_none(self):
        wo, op = uuid.uuid4(), uuid.uuid4()
        result = replay_stage_logs([
            _log(wo, op, "START", 0, rate=20),
            _log(wo, op, "COMPLETE", 0, rate=20),
        ])
        assert result is None

    def test_replay_is_deterministic(self):
        wo, op = uuid.uuid4(), uuid.uuid4()
        logs = [_log(wo, op, "START", 0, rate=35), _log(wo, op, "COMPLETE", 50, rate=35)]
        assert replay_stage_logs(logs).as_dict() == replay_stage_logs(logs).as_dict()


class TestMetricsWindow:

    def test_start_is_utc_midnight_window_days_back(self):
        settings = Settings(METRICS_WINDOW_DAYS=30)
        now = datetime(2026, 6, 30, 15, 20, tzinfo=timezone.utc)
        start, end = metrics_window(now, settings)
        assert start == datetime(2026, 5, 31, tzinfo=timezone.utc)
        assert end == now

    def test_same_day_calls_share_period_start(self):
        settings = Settings(METRICS_WINDOW_DAYS=7)
        morning, _ = metrics_window(datetime(2026, 6, 30, 1, 0, tzinfo=timezone.utc), settings)
        evening, _ = metrics_window(datetime(2026, 6, 30, 23, 0, tzinfo=timezone.utc), settings)
        assert morning == evening

    def test_naive_now_is_treated_as_utc(self):
        settings = Settings(METRICS_WINDOW_DAYS=1)
        start, end = metrics_window(datetime(2026, 6, 30, 12, 0), settings)
        assert start == datetime(2026, 6, 29, tzinfo=timezone.utc)
        assert end.tzinfo is not None
