"""
Tests for Adherence Aggregator
Tests daily rates, streaks, trends and missed-dose counts
"""

import json
import pytest
from datetime import date, timedelta

from config import adherence_config
from tools.errors import ParseError
from tools.adherence_aggregator import (
    ADHERENT_DAY_THRESHOLD,
    RECENT_ACTIVITY_DAYS,
    AdherenceMetrics,
    active_medications_on,
    compute_daily_rate,
    compute_streaks,
    compute_adherence_metrics,
    round_half_up,
    summarize_recent_activity,
    taken_dates,
)


def _days_before(today: date, days: int) -> str:
    return (today - timedelta(days=days)).isoformat()


# =============================================================================
# Test compute_daily_rate
# =============================================================================

class TestComputeDailyRate:
    """Tests for the adherence rate of a single day"""
    
    @pytest.mark.unit
    def test_rate_over_all_active_medications(self, make_medication, make_activity):
        """Test required doses sum across medications"""
        once = make_medication(frequency="once_daily", created_at="2024-03-01")
        twice = make_medication(frequency="twice_daily", created_at="2024-03-01")
        activities = [
            make_activity(once["id"], "2024-03-10"),
            make_activity(twice["id"], "2024-03-10"),
        ]
        
        assert compute_daily_rate("2024-03-10", [once, twice], activities) == 67
    
    @pytest.mark.unit
    def test_medications_created_later_are_ignored(self, make_medication, make_activity):
        """Test only medications active on the day count"""
        old = make_medication(created_at="2024-03-01")
        new = make_medication(frequency="four_times_daily", created_at="2024-03-20")
        activities = [make_activity(old["id"], "2024-03-10")]
        
        assert compute_daily_rate("2024-03-10", [old, new], activities) == 100
    
    @pytest.mark.unit
    def test_no_active_medications(self, make_medication):
        """Test a day without active medications is not tracked"""
        med = make_medication(created_at="2024-03-20")
        
        assert compute_daily_rate("2024-03-10", [med], []) is None
        assert compute_daily_rate("2024-03-10", [], []) is None
    
    @pytest.mark.unit
    def test_rounds_half_up(self, make_medication, make_activity):
        """Test 12.5% rounds to 13"""
        a = make_medication(frequency="four_times_daily", created_at="2024-03-01")
        b = make_medication(frequency="four_times_daily", created_at="2024-03-01")
        activities = [make_activity(a["id"], "2024-03-10")]
        
        assert compute_daily_rate("2024-03-10", [a, b], activities) == 13
    
    @pytest.mark.unit
    def test_rate_is_capped(self, make_medication, make_activity):
        """Test extra confirmations never push the rate above 100"""
        med = make_medication(frequency="as_needed", created_at="2024-03-01")
        activities = [make_activity(med["id"], "2024-03-10") for _ in range(3)]
        
        assert compute_daily_rate("2024-03-10", [med], activities) == 100
    
    @pytest.mark.unit
    def test_other_days_and_false_records_ignored(self, make_medication, make_activity):
        """Test only taken records of the day count"""
        med = make_medication(frequency="twice_daily", created_at="2024-03-01")
        activities = [
            make_activity(med["id"], "2024-03-09"),
            make_activity(med["id"], "2024-03-10", taken=False),
            make_activity(med["id"], "2024-03-10"),
        ]
        
        assert compute_daily_rate("2024-03-10", [med], activities) == 50
    
    @pytest.mark.unit
    def test_bad_date(self, make_medication):
        """Test an unparseable day raises ParseError"""
        with pytest.raises(ParseError):
            compute_daily_rate("March 10", [make_medication()], [])
    
    @pytest.mark.unit
    def test_active_medications_on(self, make_medication):
        """Test the active subset for a day"""
        old = make_medication(created_at="2024-03-01")
        same_day = make_medication(created_at="2024-03-10T23:59:00")
        new = make_medication(created_at="2024-03-11")
        
        active = active_medications_on("2024-03-10", [old, same_day, new])
        
        assert [m.id for m in active] == [old["id"], same_day["id"]]


# =============================================================================
# Test compute_streaks
# =============================================================================

class TestComputeStreaks:
    """Tests for streak computation"""
    
    @pytest.mark.unit
    def test_streaks(self):
        """Test current and longest runs"""
        assert compute_streaks([100, 100, 100, 0, 80, 90]) == (2, 3)
    
    @pytest.mark.unit
    def test_streak_broken_today(self):
        """Test a low latest day zeroes the current streak"""
        assert compute_streaks([100, 100, 79]) == (0, 2)
    
    @pytest.mark.unit
    def test_empty(self):
        """Test no tracked days"""
        assert compute_streaks([]) == (0, 0)
    
    @pytest.mark.unit
    def test_threshold_is_inclusive(self):
        """Test exactly the threshold counts as adherent"""
        assert ADHERENT_DAY_THRESHOLD == 80
        assert compute_streaks([80, 80]) == (2, 2)
        assert compute_streaks([50, 50], threshold=50) == (2, 2)
    
    @pytest.mark.unit
    def test_round_half_up(self):
        """Test halves round up unlike the builtin"""
        assert round_half_up(12.5) == 13
        assert round_half_up(66.666) == 67
        assert round_half_up(0.4) == 0


# =============================================================================
# Test compute_adherence_metrics
# =============================================================================

class TestComputeAdherenceMetrics:
    """Tests for aggregate adherence metrics"""
    
    @pytest.mark.unit
    def test_no_medications(self, make_activity, today):
        """Test zero medications degrade to zeroed metrics"""
        activities = [make_activity("gone", today, taken=False)]
        
        metrics = compute_adherence_metrics([], activities, today)
        
        assert isinstance(metrics, AdherenceMetrics)
        assert metrics.days_tracked == 0
        assert metrics.overall_rate == 0
        assert metrics.current_streak == 0
        assert metrics.longest_streak == 0
        assert metrics.missed_doses_this_week == 0
        assert metrics.total_medications == 0
        assert metrics.weekly_trend == [0, 0, 0, 0, 0, 0, 0]
        assert metrics.monthly_trend == []
    
    @pytest.mark.unit
    def test_perfect_adherence(self, make_medication, daily_history, today):
        """Test every dose taken since the medication was added"""
        med = make_medication(created_at=_days_before(today, 4))
        activities = daily_history(med["id"], today, 5)
        
        metrics = compute_adherence_metrics([med], activities, today)
        
        assert metrics.days_tracked == 5
        assert metrics.overall_rate == 100
        assert metrics.current_streak == 5
        assert metrics.longest_streak == 5
        assert metrics.total_medications == 1
        assert metrics.weekly_trend == [0, 0, 100, 100, 100, 100, 100]
        assert len(metrics.monthly_trend) == 5
        assert metrics.monthly_trend[0].to_dict() == {"date": "2024-03-27", "rate": 100}
        assert metrics.monthly_trend[-1].date == today
    
    @pytest.mark.unit
    def test_today_string_reference(self, make_medication, daily_history, today):
        """Test today may be passed as YYYY-MM-DD"""
        med = make_medication(created_at=_days_before(today, 1))
        activities = daily_history(med["id"], today, 2)
        
        metrics = compute_adherence_metrics([med], activities, "2024-03-31")
        
        assert metrics.days_tracked == 2
    
    @pytest.mark.unit
    def test_streak_reset_before_today(self, make_medication, daily_history, today):
        """Test a low day right before today resets the current streak"""
        med = make_medication(created_at=_days_before(today, 9))
        activities = daily_history(med["id"], today, 10, skip={1})
        
        metrics = compute_adherence_metrics([med], activities, today)
        
        assert metrics.days_tracked == 10
        assert metrics.current_streak == 1
        assert metrics.longest_streak == 8
        assert metrics.overall_rate == 90
    
    @pytest.mark.unit
    def test_streak_reset_keeps_longer_historic_run(self, make_medication, daily_history, today):
        """Test longest streak survives when the broken run was shorter"""
        med = make_medication(created_at=_days_before(today, 14))
        
        before = compute_adherence_metrics(
            [med], daily_history(med["id"], today, 15, skip={5}), today
        )
        after = compute_adherence_metrics(
            [med], daily_history(med["id"], today, 15, skip={5, 1}), today
        )
        
        assert before.current_streak == 5
        assert before.longest_streak == 9
        assert after.current_streak == 1
        assert after.longest_streak == 9
    
    @pytest.mark.unit
    def test_idempotent(self, make_medication, make_activity, daily_history, today):
        """Test identical inputs give identical output"""
        med = make_medication(frequency="twice_daily", created_at=_days_before(today, 20))
        activities = daily_history(med["id"], today, 21, skip={3, 7})
        activities.append(make_activity(med["id"], today - timedelta(days=2), taken=False))
        
        first = compute_adherence_metrics([med], activities, today)
        second = compute_adherence_metrics([med], activities, today)
        
        assert first.to_dict() == second.to_dict()
        assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())
    
    @pytest.mark.unit
    def test_extra_taken_dose_never_lowers_rate(self, make_medication, make_activity, today):
        """Test completing an incomplete day cannot decrease overall_rate"""
        med = make_medication(frequency="twice_daily", created_at=_days_before(today, 2))
        yesterday = today - timedelta(days=1)
        activities = [
            make_activity(med["id"], today - timedelta(days=2)),
            make_activity(med["id"], today - timedelta(days=2)),
            make_activity(med["id"], yesterday),
            make_activity(med["id"], today),
            make_activity(med["id"], today),
        ]
        
        before = compute_adherence_metrics([med], activities, today)
        after = compute_adherence_metrics(
            [med], activities + [make_activity(med["id"], yesterday)], today
        )
        
        assert before.overall_rate == 67
        assert after.overall_rate == 100
        assert after.overall_rate >= before.overall_rate
    
    @pytest.mark.unit
    def test_weekly_trend_uses_last_seven_days(self, make_medication, make_activity, today):
        """Test the weekly trend is the last 7 tracked rates, oldest first"""
        med = make_medication(frequency="twice_daily", created_at=_days_before(today, 9))
        activities = [
            make_activity(med["id"], today - timedelta(days=offset))
            for offset in range(10)
        ]
        activities.append(make_activity(med["id"], today))
        
        metrics = compute_adherence_metrics([med], activities, today)
        
        assert metrics.weekly_trend == [50, 50, 50, 50, 50, 50, 100]
        assert metrics.current_streak == 1
    
    @pytest.mark.unit
    def test_monthly_trend_and_inferred_misses(self, make_medication, today):
        """Test a long history keeps the last 30 days and infers misses"""
        med = make_medication(created_at=_days_before(today, 39))
        
        metrics = compute_adherence_metrics([med], [], today)
        
        assert metrics.days_tracked == 40
        assert len(metrics.monthly_trend) == 30
        assert metrics.monthly_trend[0].date == today - timedelta(days=29)
        assert all(point.rate == 0 for point in metrics.monthly_trend)
        assert metrics.overall_rate == 0
        # No false rows exist, so the literal counts stay at zero
        assert metrics.missed_doses_this_week == 0
        assert metrics.missed_doses_this_month == 0
        # Absence of a record is a miss; today is still open
        assert metrics.inferred_missed_this_week == 7
        assert metrics.inferred_missed_this_month == 30
    
    @pytest.mark.unit
    def test_inferred_misses_per_medication(self, make_medication, make_activity, today):
        """Test shortfalls are counted per medication"""
        twice = make_medication(frequency="twice_daily", created_at=_days_before(today, 2))
        once = make_medication(frequency="once_daily", created_at=_days_before(today, 1))
        activities = [
            make_activity(twice["id"], today - timedelta(days=2)),
            make_activity(twice["id"], today - timedelta(days=2)),
            make_activity(twice["id"], today - timedelta(days=1)),
            # extra dose of one medication does not cover another
            make_activity(twice["id"], today - timedelta(days=1)),
            make_activity(twice["id"], today - timedelta(days=1)),
        ]
        
        metrics = compute_adherence_metrics([twice, once], activities, today)
        
        assert metrics.inferred_missed_this_week == 1
    
    @pytest.mark.unit
    def test_literal_missed_records(self, make_medication, make_activity, today):
        """Test taken=false rows are counted inside the 7 and 30 day windows"""
        med = make_medication(created_at=_days_before(today, 40))
        activities = [
            make_activity(med["id"], today - timedelta(days=offset), taken=False)
            for offset in (0, 7, 8, 30, 31)
        ]
        activities.append(make_activity(med["id"], today + timedelta(days=1), taken=False))
        
        metrics = compute_adherence_metrics([med], activities, today)
        
        assert metrics.missed_doses_this_week == 2
        assert metrics.missed_doses_this_month == 4
    
    @pytest.mark.unit
    def test_timestamp_created_at(self, make_medication, daily_history, today):
        """Test ISO timestamps are reduced to their calendar day"""
        meds = [
            make_medication(created_at="2024-03-29T10:15:00Z"),
            make_medication(created_at="2024-03-29T22:00:00.000+00:00"),
            make_medication(created_at="2024-03-29T22:00:00.12345+00:00"),
            make_medication(created_at="2024-03-29 22:00:00+00"),
        ]
        
        metrics = compute_adherence_metrics(meds, [], today)
        
        assert metrics.days_tracked == 3
        assert metrics.total_medications == 4
    
    @pytest.mark.unit
    def test_medication_added_after_today(self, make_medication, today):
        """Test a window that has not started yet tracks nothing"""
        med = make_medication(created_at="2024-04-05")
        
        metrics = compute_adherence_metrics([med], [], today)
        
        assert metrics.days_tracked == 0
        assert metrics.overall_rate == 0
        assert metrics.weekly_trend == [0] * 7
        assert metrics.total_medications == 1
    
    @pytest.mark.unit
    def test_custom_threshold(self, make_medication, make_activity, today):
        """Test the adherent-day threshold can be lowered"""
        med = make_medication(frequency="twice_daily", created_at=_days_before(today, 1))
        activities = [
            make_activity(med["id"], today - timedelta(days=1)),
            make_activity(med["id"], today),
        ]
        
        default = compute_adherence_metrics([med], activities, today)
        lenient = compute_adherence_metrics([med], activities, today, threshold=50)
        
        assert default.overall_rate == 0
        assert lenient.overall_rate == 100
        assert lenient.current_streak == 2
    
    @pytest.mark.unit
    @pytest.mark.parametrize("field,value", [
        ("created_at", "2024/03/01"),
        ("created_at", None),
        ("created_at", "2024-02-30"),
    ])
    def test_malformed_medication_date(self, make_medication, today, field, value):
        """Test malformed dates raise ParseError"""
        med = make_medication(**{field: value})
        
        with pytest.raises(ParseError):
            compute_adherence_metrics([med], [], today)
    
    @pytest.mark.unit
    def test_malformed_activity_date(self, make_medication, make_activity, today):
        """Test a malformed activity date raises ParseError"""
        med = make_medication()
        
        with pytest.raises(ParseError):
            compute_adherence_metrics([med], [make_activity(med["id"], "yesterday")], today)
    
    @pytest.mark.unit
    def test_malformed_today(self, make_medication):
        """Test a malformed reference day raises ParseError"""
        with pytest.raises(ParseError):
            compute_adherence_metrics([make_medication()], [], "31-03-2024")
    
    @pytest.mark.unit
    def test_to_dict_shape(self, make_medication, today):
        """Test the serialized metrics carry every field"""
        metrics = compute_adherence_metrics([make_medication()], [], today).to_dict()
        
        assert set(metrics) == {
            "overall_rate", "current_streak", "longest_streak",
            "missed_doses_this_week", "missed_doses_this_month",
            "total_medications", "days_tracked", "weekly_trend", "monthly_trend",
            "inferred_missed_this_week", "inferred_missed_this_month",
        }
        assert metrics["monthly_trend"] == [{"date": "2024-03-31", "rate": 0}]


# =============================================================================
# Test record-level summaries
# =============================================================================

class TestRecentActivitySummary:
    """Tests for summarize_recent_activity and taken_dates"""
    
    @pytest.mark.unit
    def test_summary(self, make_medication, make_activity, today):
        """Test rate, streak, misses and last taken day"""
        med = make_medication()
        activities = [
            make_activity(med["id"], today - timedelta(days=3)),
            make_activity(med["id"], today - timedelta(days=2), taken=False),
            make_activity(med["id"], today - timedelta(days=1)),
            make_activity(med["id"], today),
            make_activity(med["id"], today - timedelta(days=40)),
        ]
        
        summary = summarize_recent_activity([med], activities, today)
        
        assert summary.adherence_rate == 75
        assert summary.current_streak == 2
        assert summary.missed_doses == 1
        assert summary.last_taken == today
        assert summary.total_medications == 1
        assert summary.to_dict()["last_taken"] == "2024-03-31"
    
    @pytest.mark.unit
    def test_summary_without_activity(self, make_medication, today):
        """Test no records gives a zeroed summary"""
        summary = summarize_recent_activity([make_medication()], [], today)
        
        assert summary.adherence_rate == 0
        assert summary.last_taken is None
        assert summary.total_medications == 1
    
    @pytest.mark.unit
    def test_summary_streak_starts_at_latest_record_of_the_day(
        self, make_medication, make_activity, today
    ):
        """Test same-day records are walked newest first"""
        med = make_medication(frequency="twice_daily")
        activities = [
            make_activity(med["id"], today - timedelta(days=1)),
            make_activity(med["id"], today, taken=False),
            make_activity(med["id"], today, taken_time="20:00"),
        ]
        
        summary = summarize_recent_activity([med], activities, today)
        
        assert summary.current_streak == 1
        assert summary.missed_doses == 1
    
    @pytest.mark.unit
    def test_summary_window_matches_config(self):
        """Test the caretaker list uses the summary window"""
        assert adherence_config.RECENT_ACTIVITY_DAYS == RECENT_ACTIVITY_DAYS == 30
    
    @pytest.mark.unit
    def test_taken_dates(self, make_activity, today):
        """Test calendar days with at least one taken dose"""
        activities = [
            make_activity("m1", today),
            make_activity("m2", today),
            make_activity("m1", today - timedelta(days=1), taken=False),
            make_activity("m1", today - timedelta(days=5)),
        ]
        
        assert taken_dates(activities) == {today, today - timedelta(days=5)}
        assert taken_dates(activities, since=today - timedelta(days=2)) == {today}
