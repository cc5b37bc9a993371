"""
Tests for the marathon plan generator.

Tests cover:
1. Half-up rounding
2. Weekly mileage curve (build oscillation, peak, taper)
3. Long-run progression (step-backs, peak, taper cap)
4. Daily mileage allocation
5. Plan structure, dates and labels
6. Injected ids/clock and determinism
7. Parameters

Run with: python -m pytest tests/test_plan_generator.py -v
"""

import itertools
from datetime import date, datetime, timedelta, timezone

import numpy as np
import pytest

from planner.plan_generator import (
    PlanParams,
    PlanGenerator,
    TOTAL_WEEKS,
    round_half_up,
    calculate_weekly_mileage,
    weekly_mileage_curve,
    peak_long_run_miles,
    apply_long_run_progression,
    calculate_long_run_miles,
    allocate_daily_mileage,
    plan_start_date,
    create_marathon_plan,
)


FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def counting_ids(prefix="id"):
    counter = itertools.count()
    return lambda: f"{prefix}-{next(counter)}"


def make_generator(prefix="id"):
    return PlanGenerator(id_factory=counting_ids(prefix), clock=lambda: FIXED_NOW)


def long_runs(peak):
    return [calculate_long_run_miles(w, peak) for w in range(1, TOTAL_WEEKS + 1)]


# =============================================================================
# Rounding
# =============================================================================

class TestRoundHalfUp:
    """Ties go toward +infinity, unlike round()."""

    def test_ties_round_up(self):
        assert round_half_up(10.5) == 11
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1

    def test_negative_ties_round_toward_zero(self):
        assert round_half_up(-0.5) == 0
        assert round_half_up(-2.5) == -2

    def test_non_ties(self):
        assert round_half_up(8.8) == 9
        assert round_half_up(11.25) == 11
        assert round_half_up(-0.6667) == -1
        assert round_half_up(7.0) == 7


# =============================================================================
# Weekly mileage
# =============================================================================

class TestWeeklyMileage:
    """Tests for the weekly mileage curve."""

    def test_peak_week_is_peak(self):
        assert calculate_weekly_mileage(16, 50) == 50
        assert calculate_weekly_mileage(16, 72.5) == 72.5

    def test_taper_fractions_unrounded(self):
        assert calculate_weekly_mileage(17, 50) == pytest.approx(37.5)
        assert calculate_weekly_mileage(18, 50) == pytest.approx(20.0)

    def test_week_one_starts_at_half(self):
        assert calculate_weekly_mileage(1, 50) == 25
        assert calculate_weekly_mileage(1, 80) == 40

    def test_recovery_dip_clamped_at_minimum(self):
        """Week 3 dips below 50% and is clamped back to 50%."""
        assert calculate_weekly_mileage(3, 50) == 25

    def test_late_build_values(self):
        assert calculate_weekly_mileage(14, 50) == 47
        assert calculate_weekly_mileage(15, 50) == 41

    def test_build_weeks_are_whole_miles(self):
        for week in range(1, 16):
            value = calculate_weekly_mileage(week, 63)
            assert value == int(value)

    def test_oscillation_pattern(self):
        """Recovery weeks (3, 6, 9, 12, 15) drop below their neighbours."""
        for week in (6, 9, 12, 15):
            assert calculate_weekly_mileage(week, 60) < calculate_weekly_mileage(week - 1, 60)
        for week in (5, 8, 11, 14):
            assert calculate_weekly_mileage(week, 60) > calculate_weekly_mileage(week - 1, 60)

    def test_build_stays_within_bounds(self):
        for week in range(1, 16):
            value = calculate_weekly_mileage(week, 100)
            assert 50 <= value <= 95

    def test_curve_array(self):
        curve = weekly_mileage_curve(50)
        assert isinstance(curve, np.ndarray)
        assert curve.shape == (18,)
        assert curve[15] == 50
        assert curve[16] == pytest.approx(37.5)
        assert curve[17] == pytest.approx(20.0)


# =============================================================================
# Long run
# =============================================================================

class TestLongRun:
    """Tests for the long-run progression."""

    def test_peak_long_run_threshold(self):
        assert peak_long_run_miles(50) == 20
        assert peak_long_run_miles(59.9) == 20
        assert peak_long_run_miles(60) == 22
        assert peak_long_run_miles(65) == 22

    def test_progression_below_sixty(self):
        expected = [8, 10, 12, 9, 11, 13, 15, 11, 12, 13, 14, 11, 12, 13, 14]
        assert [apply_long_run_progression(w, 50) for w in range(1, 16)] == expected

    def test_progression_sixty_and_above(self):
        expected = [9, 11, 13, 10, 12, 14, 16, 12, 13, 14, 15, 11, 12, 13, 14]
        assert [apply_long_run_progression(w, 65) for w in range(1, 16)] == expected

    def test_step_back_tie_rounds_up(self):
        """Week 12 at peak 50: 14 * 0.75 = 10.5 -> 11."""
        assert apply_long_run_progression(12, 50) == 11

    def test_progression_never_exceeds_peak_long_run(self):
        params = PlanParams(early_increase=5)
        for week in range(1, 16):
            assert apply_long_run_progression(week, 50, params) <= 20

    def test_week_sixteen(self):
        assert calculate_long_run_miles(16, 50) == 20
        assert calculate_long_run_miles(16, 60) == 22
        assert calculate_long_run_miles(16, 65) == 22

    def test_taper_long_run_capped(self):
        """Peak 70: 0.35 * 52.5 rounds to 18, capped at 14."""
        assert calculate_long_run_miles(17, 70) == 14
        assert calculate_long_run_miles(17, 100) == 14

    def test_taper_long_run_natural_value(self):
        value = calculate_long_run_miles(17, 40)
        assert 10 <= value <= 11
        assert value < 14

    def test_race_week_long_run(self):
        assert calculate_long_run_miles(18, 50) == 5
        assert calculate_long_run_miles(18, 80) == 8

    @pytest.mark.parametrize("peak", [40, 45, 50, 55, 60, 65, 70])
    def test_week_one_long_run_range(self, peak):
        assert 8 <= calculate_long_run_miles(1, peak) <= 12

    @pytest.mark.parametrize("peak", [40, 50, 60, 70])
    def test_mostly_increasing(self, peak):
        runs = long_runs(peak)[:15]
        increases = sum(1 for a, b in zip(runs, runs[1:]) if b > a)
        assert increases >= 9

    @pytest.mark.parametrize("peak", [40, 50, 60, 70])
    def test_step_back_reduction(self, peak):
        runs = long_runs(peak)
        for week in (4, 8, 12):
            reduction = 1 - runs[week - 1] / runs[week - 2]
            assert 0.15 <= reduction <= 0.30


# =============================================================================
# Daily allocation
# =============================================================================

class TestDailyAllocation:
    """Tests for splitting a week across days."""

    def test_peak_week_split(self):
        assert allocate_daily_mileage(50, 20) == {
            1: 5, 2: 7, 3: 5, 4: 7, 5: 5, 6: 20, 7: 0,
        }

    def test_negative_residual_removed_from_easy_days(self):
        """3*3 + 2*4 + 5 = 22 > 20, so each easy day loses a mile."""
        assert allocate_daily_mileage(20, 5) == {
            1: 2, 2: 4, 3: 2, 4: 4, 5: 2, 6: 5, 7: 0,
        }

    def test_positive_residual_added_to_easy_days(self):
        """3*4 + 2*6 + 10 = 34 < 36, so each easy day gains a mile."""
        assert allocate_daily_mileage(36, 10) == {
            1: 5, 2: 6, 3: 5, 4: 6, 5: 5, 6: 10, 7: 0,
        }

    def test_workout_days_heavier_than_easy(self):
        miles = allocate_daily_mileage(70, 22)
        assert miles[2] > miles[1]
        assert miles[4] == miles[2]
        assert miles[1] == miles[3] == miles[5]
        assert miles[7] == 0

    @pytest.mark.parametrize("peak", list(range(20, 101, 5)))
    def test_week_totals_match_targets(self, peak):
        plan = make_generator().create_marathon_plan(date(2025, 4, 21), peak, "u")
        for week in plan.weeks:
            assert abs(week.total_miles - week.target_mileage) <= 1


# =============================================================================
# Plan structure
# =============================================================================

class TestPlanStructure:
    """Tests for the generated plan tree."""

    @pytest.fixture
    def plan(self):
        return make_generator().create_marathon_plan(date(2024, 10, 15), 50, "user-123")

    def test_counts(self, plan):
        assert plan.total_weeks == 18
        assert len(plan.weeks) == 18
        assert [w.week_number for w in plan.weeks] == list(range(1, 19))
        for week in plan.weeks:
            assert len(week.training_days) == 7
            assert [d.day_of_week for d in week.training_days] == list(range(1, 8))

    def test_plan_fields(self, plan):
        assert plan.user_id == "user-123"
        assert plan.name == "Marathon Training Plan"
        assert plan.description == "18-week marathon training plan ending on Tue Oct 15 2024"
        assert plan.marathon_date == date(2024, 10, 15)
        assert plan.goal_time is None

    def test_race_day_closes_last_week(self, plan):
        assert plan.weeks[17].start_date + timedelta(days=6) == date(2024, 10, 15)
        assert plan.weeks[17].training_days[6].date == date(2024, 10, 15)

    def test_start_date(self, plan):
        assert plan.start_date == date(2024, 6, 12)
        assert plan_start_date(date(2024, 10, 15)) == date(2024, 6, 12)

    def test_weeks_are_consecutive(self, plan):
        for previous, week in zip(plan.weeks, plan.weeks[1:]):
            assert week.start_date == previous.start_date + timedelta(days=7)

    def test_day_dates(self, plan):
        for week in plan.weeks:
            for day in week.training_days:
                assert day.date == week.start_date + timedelta(days=day.day_of_week - 1)

    def test_day_labels(self, plan):
        for week in plan.weeks:
            assert week.day(1).description == "Easy Run"
            assert "Workout" in week.day(2).description
            assert week.day(3).description == "Easy Run"
            assert "Workout" in week.day(4).description
            assert week.day(5).description == "Easy Run"
            assert week.day(6).description == "Long Run"
            assert "Rest" in week.day(7).description
            assert week.day(7).miles == 0

    def test_back_references(self, plan):
        for week in plan.weeks:
            assert week.plan_id == plan.id
            for day in week.training_days:
                assert day.week_id == week.id

    def test_tracking_fields_empty(self, plan):
        for week in plan.weeks:
            assert week.actual_mileage is None
            assert week.notes is None
            for day in week.training_days:
                assert day.workout_id is None
                assert day.actual_miles is None
                assert day.actual_notes is None
                assert day.completed is False
                assert day.completed_at is None

    def test_end_to_end_example(self, plan):
        week16 = plan.week(16)
        assert week16.target_mileage == 50
        assert week16.day(6).miles == 20
        assert week16.day(6).description == "Long Run"
        assert plan.week(17).day(6).miles <= 14
        assert abs(plan.week(18).total_miles - 20) <= 1
        assert plan.week(18).end_date == date(2024, 10, 15)

    def test_taper_targets(self, plan):
        assert plan.week(17).target_mileage == 38
        assert plan.week(18).target_mileage == 20

    @pytest.mark.parametrize("peak", [40, 50, 60, 70])
    def test_taper_totals(self, peak):
        plan = make_generator().create_marathon_plan(date(2025, 10, 12), peak, "u")
        assert abs(plan.week(17).total_miles - 0.75 * peak) <= 1.5
        assert abs(plan.week(18).total_miles - 0.40 * peak) <= 1.5

    @pytest.mark.parametrize("peak", [40, 50, 60, 70, 90])
    def test_mileage_trend(self, peak):
        plan = make_generator().create_marathon_plan(date(2025, 10, 12), peak, "u")
        early = np.mean([w.total_miles for w in plan.weeks[:8]])
        late = np.mean([w.total_miles for w in plan.weeks[8:16]])
        assert late > early

    def test_datetime_input_reduced_to_date(self):
        plan = make_generator().create_marathon_plan(
            datetime(2024, 10, 15, 7, 30), 50, "u"
        )
        assert plan.marathon_date == date(2024, 10, 15)
        assert plan.weeks[17].end_date == date(2024, 10, 15)

    def test_race_weekday_not_adjusted(self):
        """A Saturday marathon still closes week 18 on day 7."""
        plan = make_generator().create_marathon_plan(date(2025, 3, 1), 50, "u")
        last = plan.weeks[17]
        assert last.day(7).date == date(2025, 3, 1)
        assert last.day(6).description == "Long Run"

    def test_to_dict_shape(self, plan):
        data = plan.to_dict()
        assert data['marathonDate'] == "2024-10-15"
        assert data['totalWeeks'] == 18
        assert len(data['weeks']) == 18
        first_day = data['weeks'][0]['trainingDays'][0]
        assert first_day['date'] == "2024-06-12"
        assert first_day['dayOfWeek'] == 1
        assert first_day['completed'] is False


# =============================================================================
# Injected ids, clock and determinism
# =============================================================================

class TestDeterminism:
    """Tests for purity of the generator."""

    def test_injected_ids_are_unique(self):
        plan = make_generator().create_marathon_plan(date(2024, 10, 15), 50, "u")
        ids = [plan.id]
        for week in plan.weeks:
            ids.append(week.id)
            ids.extend(d.id for d in week.training_days)
        assert len(ids) == 1 + 18 + 126
        assert len(set(ids)) == len(ids)
        assert plan.id == "id-0"

    def test_injected_clock(self):
        plan = make_generator().create_marathon_plan(date(2024, 10, 15), 50, "u")
        assert plan.created_at == FIXED_NOW
        assert plan.weeks[0].created_at == FIXED_NOW
        assert plan.weeks[0].training_days[0].updated_at == FIXED_NOW

    def test_same_inputs_same_structure(self):
        def structure(plan):
            return [
                (w.week_number, w.start_date, w.target_mileage,
                 [(d.date, d.miles, d.description) for d in w.training_days])
                for w in plan.weeks
            ]

        a = make_generator("a").create_marathon_plan(date(2024, 10, 15), 55, "alice")
        b = make_generator("b").create_marathon_plan(date(2024, 10, 15), 55, "bob")

        assert structure(a) == structure(b)
        assert a.user_id != b.user_id
        assert a.id != b.id

    def test_default_ids_are_uuids(self):
        plan = create_marathon_plan(date(2024, 10, 15), 50, "u")
        other = create_marathon_plan(date(2024, 10, 15), 50, "u")
        assert plan.id != other.id
        assert len(plan.id) == 36

    def test_plan_is_immutable(self):
        plan = make_generator().create_marathon_plan(date(2024, 10, 15), 50, "u")
        with pytest.raises(AttributeError):
            plan.name = "Changed"
        with pytest.raises(AttributeError):
            plan.weeks[0].training_days[0].miles = 99


# =============================================================================
# Edge cases and parameters
# =============================================================================

class TestEdgeCases:
    """The generator performs no input validation."""

    def test_zero_and_negative_mileage_do_not_raise(self):
        for peak in (0, -10):
            plan = make_generator().create_marathon_plan(date(2024, 10, 15), peak, "u")
            assert len(plan.weeks) == 18

    def test_fractional_peak(self):
        plan = make_generator().create_marathon_plan(date(2024, 10, 15), 47.5, "u")
        assert plan.week(16).target_mileage == 48

    def test_past_marathon_date(self):
        plan = make_generator().create_marathon_plan(date(1999, 1, 3), 50, "u")
        assert plan.weeks[17].end_date == date(1999, 1, 3)


class TestPlanParams:
    """Tests for the parameter dataclass."""

    def test_defaults_valid(self):
        valid, message = PlanParams().validate()
        assert valid
        assert message == "Valid"

    def test_round_trip_dict(self):
        params = PlanParams(taper_long_run_cap=12)
        assert PlanParams.from_dict(params.to_dict()) == params

    def test_invalid_taper(self):
        valid, message = PlanParams(taper_fraction=0.3, race_week_fraction=0.4).validate()
        assert not valid
        assert "Taper" in message

    def test_custom_cap_applied(self):
        params = PlanParams(taper_long_run_cap=12)
        assert calculate_long_run_miles(17, 70, params) == 12

    def test_two_week_oscillation_cycle_dips(self):
        params = PlanParams(oscillation_cycle=2)
        # Every second build week is a recovery week clamped to the minimum
        assert calculate_weekly_mileage(2, 50, params) == 25
        assert calculate_weekly_mileage(4, 50, params) == 25
        assert calculate_weekly_mileage(3, 50, params) == 28

    def test_one_week_oscillation_cycle_is_flat(self):
        params = PlanParams(oscillation_cycle=1)
        assert calculate_weekly_mileage(3, 50, params) == 28
        assert calculate_weekly_mileage(3, 50) == 25


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
