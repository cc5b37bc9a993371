#!/usr/bin/env python3
"""
Marathon Plan Builder - CLI Entry Point

Usage:
    python main.py create --date YYYY-MM-DD --peak N --user ID [--params F] [--db URL] [--json F]
    python main.py report --date YYYY-MM-DD --peak N [--params F]
    python main.py duplicate --db URL --plan ID --user ID --date YYYY-MM-DD --name NAME
    python main.py stats --db URL --user ID [--today YYYY-MM-DD]
"""

import sys
import argparse
import json
from datetime import date

from planner.plan_generator import PlanGenerator, PlanParams
from planner.duplication import duplicate_plan
from planner.errors import PlanError, PlanNotFoundError, PlanValidationError
from planner.validation import parse_marathon_date, validate_plan_request
from storage.sql import SqlPlanStore
from analysis.dashboard import dashboard_stats, upcoming_workouts, weekly_summary
from analysis.reports import generate_plan_report


def load_params(path: str = None) -> PlanParams:
    """Load PlanParams from a JSON file, or the defaults."""
    if not path:
        return PlanParams()

    try:
        with open(path) as f:
            params = PlanParams.from_dict(json.load(f))
        valid, message = params.validate()
    except OSError as exc:
        raise PlanValidationError(f"Cannot read plan parameters {path}: {exc}", field="params") from exc
    except (TypeError, ValueError) as exc:
        # Malformed JSON, a non-object document or an unknown parameter name
        raise PlanValidationError(f"Invalid plan parameters in {path}: {exc}", field="params") from exc

    if not valid:
        raise PlanValidationError(f"Invalid plan parameters: {message}", field="params")
    return params


def run_create(args):
    """Generate a plan, optionally save it and write it as JSON."""
    request = validate_plan_request(args.date, args.peak, args.user)
    params = load_params(args.params)

    plan = PlanGenerator(params).create_marathon_plan(
        request.marathon_date, request.peak_weekly_mileage, request.user_id
    )

    print(f"Created {plan.name} ({plan.id})")
    print(f"  {plan.description}")
    print(weekly_summary(plan).to_string(index=False))

    if args.db:
        store = SqlPlanStore(args.db, verbose=args.verbose)
        saved = store.save_plan(plan)
        print(f"\nSaved to {args.db} as {saved.id}")

    if args.json:
        with open(args.json, 'w') as f:
            json.dump(plan.to_dict(), f, indent=2)
        print(f"Plan written to: {args.json}")

    return plan


def run_report(args):
    """Print the text report of a freshly generated plan."""
    request = validate_plan_request(args.date, args.peak, "report")
    params = load_params(args.params)

    plan = PlanGenerator(params).create_marathon_plan(
        request.marathon_date, request.peak_weekly_mileage, request.user_id
    )
    print(generate_plan_report(plan, params if args.params else None))
    return plan


def run_duplicate(args):
    """Copy a saved plan onto a new marathon date for a user."""
    store = SqlPlanStore(args.db, verbose=args.verbose)

    source = store.get_full_plan(args.plan)
    if source is None:
        raise PlanNotFoundError(args.plan)

    copy = duplicate_plan(
        source,
        user_id=args.user,
        marathon_date=args.date,
        name=args.name,
        description=args.description,
        goal_time=args.goal_time,
    )
    saved = store.save_plan(copy)

    print(f"Duplicated {source.id} -> {saved.id}")
    print(f"  {saved.name}, marathon {saved.marathon_date.isoformat()}")
    return saved


def run_stats(args):
    """Print dashboard stats and upcoming days for a user."""
    store = SqlPlanStore(args.db, verbose=args.verbose)
    today = parse_marathon_date(args.today) if args.today else date.today()

    plans = store.list_full_plans(args.user)
    stats = dashboard_stats(plans, today)

    print(f"Dashboard for {args.user} ({today.isoformat()})")
    for key, value in stats.items():
        if isinstance(value, float):
            print(f"  {key}: {value:.1f}")
        else:
            print(f"  {key}: {value}")

    upcoming = upcoming_workouts(plans, today)
    if upcoming.empty:
        print("\nNo upcoming workouts")
    else:
        print("\nUpcoming:")
        print(upcoming[['date', 'description', 'miles', 'plan_name', 'week_number']]
              .to_string(index=False))

    return stats


def main(argv=None):
    parser = argparse.ArgumentParser(description='Marathon Plan Builder')
    parser.add_argument('--verbose', action='store_true', help='Print storage progress')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Create command
    create_parser = subparsers.add_parser('create', help='Generate an 18-week plan')
    create_parser.add_argument('--date', required=True, help='Marathon date (YYYY-MM-DD)')
    create_parser.add_argument('--peak', required=True, help='Peak weekly mileage (20-100)')
    create_parser.add_argument('--user', required=True, help='Owner user id')
    create_parser.add_argument('--params', help='JSON file with plan parameters')
    create_parser.add_argument('--db', help='SQLAlchemy URL to save the plan to')
    create_parser.add_argument('--json', help='Write the plan as JSON to this file')

    # Report command
    report_parser = subparsers.add_parser('report', help='Print a plan report')
    report_parser.add_argument('--date', required=True, help='Marathon date (YYYY-MM-DD)')
    report_parser.add_argument('--peak', required=True, help='Peak weekly mileage (20-100)')
    report_parser.add_argument('--params', help='JSON file with plan parameters')

    # Duplicate command
    dup_parser = subparsers.add_parser('duplicate', help='Copy a saved plan to a new date')
    dup_parser.add_argument('--db', required=True, help='SQLAlchemy URL')
    dup_parser.add_argument('--plan', required=True, help='Source plan id')
    dup_parser.add_argument('--user', required=True, help='Owner of the copy')
    dup_parser.add_argument('--date', required=True, help='New marathon date (YYYY-MM-DD)')
    dup_parser.add_argument('--name', required=True, help='Name of the copy')
    dup_parser.add_argument('--description', help='Description of the copy')
    dup_parser.add_argument('--goal-time', dest='goal_time', help='Goal finish time')

    # Stats command
    stats_parser = subparsers.add_parser('stats', help='Show dashboard stats')
    stats_parser.add_argument('--db', required=True, help='SQLAlchemy URL')
    stats_parser.add_argument('--user', required=True, help='User id')
    stats_parser.add_argument('--today', help='Reference date (YYYY-MM-DD)')

    args = parser.parse_args(argv)

    commands = {
        'create': run_create,
        'report': run_report,
        'duplicate': run_duplicate,
        'stats': run_stats,
    }

    if args.command not in commands:
        parser.print_help()
        return

    try:
        commands[args.command](args)
    except PlanError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
