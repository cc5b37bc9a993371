"""
Report generation utilities for marathon plans.

Generates fixed-width text summaries of a generated or saved plan.
"""

from typing import Optional
import numpy as np
from datetime import datetime

from planner.plan_generator import PlanParams
from planner.plan_model import TrainingPlan

from .dashboard import mileage_trend, plan_phase


def generate_plan_report(
    plan: TrainingPlan,
    params: Optional[PlanParams] = None,
    title: Optional[str] = None
) -> str:
    """
    Generate a text report of a plan.

    Args:
        plan: Plan to describe
        params: Parameters used (for documentation)
        title: Report title (plan name if None)

    Returns:
        Formatted report string
    """
    title = title or plan.name
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    trend = mileage_trend(plan)
    targets = np.array([w.target_mileage for w in plan.weeks], dtype=float)

    report = f"""
{'='*70}
{title}
{'='*70}
Generated: {timestamp}
Marathon date: {plan.marathon_date.isoformat()}
Plan start:    {plan.start_date.isoformat()}
Weeks:         {plan.total_weeks}
{plan.description or ''}

MILEAGE
-------
Peak week target:          {targets.max():>8.0f} mi
Total planned:             {plan.total_miles:>8.0f} mi
Weeks 1-8 mean:            {trend['early_mean_mileage']:>8.1f} mi
Weeks 9-16 mean:           {trend['late_mean_mileage']:>8.1f} mi
Peak long run:             {trend['peak_long_run']:>8.0f} mi
Long-run increases (1-15): {trend['long_run_increases']:>8d}
"""

    report += """
WEEKLY BREAKDOWN
----------------
"""
    report += (f"{'Week':>4} {'Start':>11} {'Phase':>6} {'Target':>7} "
               f"{'Plan':>5} {'Mon':>4} {'Tue':>4} {'Wed':>4} {'Thu':>4} "
               f"{'Fri':>4} {'Sat':>4} {'Sun':>4}\n")
    report += "-" * 70 + "\n"

    for week in plan.weeks:
        days = " ".join(f"{d.miles:>4.0f}" for d in week.training_days)
        report += (f"{week.week_number:>4d} "
                   f"{week.start_date.isoformat():>11} "
                   f"{plan_phase(week.week_number):>6} "
                   f"{week.target_mileage:>7.0f} "
                   f"{week.total_miles:>5.0f} "
                   f"{days}\n")

    if trend['step_back_reductions']:
        report += "\nSTEP-BACK WEEKS\n---------------\n"
        for week_number, reduction in trend['step_back_reductions'].items():
            report += f"  Week {week_number:>2d}: long run -{reduction*100:.0f}%\n"

    if params:
        report += f"""
PLAN PARAMETERS
---------------
Build: {params.build_start_fraction:.2f} + {params.build_range:.2f} x progress, clamp [{params.min_build_fraction:.2f}, {params.max_build_fraction:.2f}]
Oscillation: rebound {params.rebound_boost:+.2f}, recovery {params.recovery_dip:+.2f}
Taper: week 17 {params.taper_fraction:.2f}, week 18 {params.race_week_fraction:.2f}
Long run peak: {params.peak_long_run_high} mi (>= {params.high_mileage_threshold:g} mi/week), else {params.peak_long_run_low} mi
Taper long run cap: {params.taper_long_run_cap} mi
Workout/easy ratio: {params.workout_easy_ratio:.2f}
"""

    report += "\n" + "=" * 70 + "\n"
    return report
