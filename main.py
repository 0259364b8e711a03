"""
Clinic booking engine command line.

Queries the seeded demo clinic and prints pydantic results as JSON.

Usage:
    Day:       python main.py day 2025-03-18 --role patient --now 2025-03-17T08:00
    Week:      python main.py week 2025-03-17 --role admin
    Validate:  python main.py validate 2025-03-18 09:00 --role patient --now 2025-03-17T10:00
    Book:      python main.py book 2025-03-18 09:30 --role patient --now 2025-03-17T08:00
    Demo:      python main.py demo --scenario conflict
"""

import argparse
import json
import sys
from datetime import datetime
from typing import Optional

from clinic_booking.dates import InvalidDateFormat, InvalidTimeFormat, parse, start_of_week
from clinic_booking.rules.policy import InvalidRole, Role
from clinic_booking.scheduling.service import AvailabilityService
from clinic_booking.tools.clock import FixedClock, SystemClock
from clinic_booking.tools.demo_data import (
    DEMO_DOCTORS,
    DEMO_ORGANIZATION,
    build_demo_store,
)


def _parse_now(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"--now must be an ISO datetime, got {value!r}") from None


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _build_service(args: argparse.Namespace) -> AvailabilityService:
    anchor = start_of_week(parse(args.seed_week))
    store = build_demo_store(anchor)
    clock = FixedClock(args.now) if args.now is not None else SystemClock()
    return AvailabilityService(store, clock=clock)


def _run_day(args: argparse.Namespace) -> None:
    service = _build_service(args)
    day = service.compute_day_availability(
        args.organization, args.doctor, args.date, args.role, args.duration,
        use_standard_rules=args.standard_rules,
    )
    _print_json(day.model_dump(mode="json"))


def _run_week(args: argparse.Namespace) -> None:
    service = _build_service(args)
    week = service.compute_week_availability(
        args.organization, args.doctor, args.start, args.role, args.duration,
        use_standard_rules=args.standard_rules,
    )
    _print_json([day.model_dump(mode="json", exclude={"slots"}) for day in week])


def _run_validate(args: argparse.Namespace) -> None:
    service = _build_service(args)
    result = service.validate_candidate(
        args.date, args.time, args.role,
        organization_id=args.organization,
        doctor_id=args.doctor,
        duration_minutes=args.duration,
        use_standard_rules=args.standard_rules,
    )
    _print_json(result.model_dump(mode="json"))


def _run_book(args: argparse.Namespace) -> None:
    service = _build_service(args)
    result = service.book_appointment(
        args.organization, args.doctor, args.date, args.time, args.role,
        patient_id=args.patient,
        duration_minutes=args.duration,
        use_standard_rules=args.standard_rules,
    )
    _print_json(result.model_dump(mode="json"))


def _run_demo(args: argparse.Namespace) -> None:
    from console_demo import main as console_main

    argv = ["--week-start", args.seed_week]
    if args.scenario:
        argv += ["--scenario", args.scenario]
    console_main(argv)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Clinic booking engine")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--organization", default=DEMO_ORGANIZATION)
    common.add_argument("--doctor", default=DEMO_DOCTORS[0], choices=DEMO_DOCTORS)
    common.add_argument("--role", default=Role.PATIENT.value, choices=[r.value for r in Role])
    common.add_argument("--duration", type=int, default=None, help="Slot length in minutes")
    common.add_argument(
        "--standard-rules", action="store_true",
        help="Apply patient rules even to a privileged role",
    )
    common.add_argument(
        "--now", type=_parse_now, default=None,
        help="Pin the clock (ISO datetime; naive means clinic wall-clock time)",
    )
    common.add_argument(
        "--seed-week", default="2025-03-17",
        help="Week the demo appointments are laid out in",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    day = sub.add_parser("day", parents=[common], help="Availability of one date")
    day.add_argument("date")
    day.set_defaults(handler=_run_day)

    week = sub.add_parser("week", parents=[common], help="Seven days from a start date")
    week.add_argument("start")
    week.set_defaults(handler=_run_week)

    validate = sub.add_parser("validate", parents=[common], help="Check one date and time")
    validate.add_argument("date")
    validate.add_argument("time")
    validate.set_defaults(handler=_run_validate)

    book = sub.add_parser("book", parents=[common], help="Validate and book one slot")
    book.add_argument("date")
    book.add_argument("time")
    book.add_argument("--patient", default="pat-cli")
    book.set_defaults(handler=_run_book)

    demo = sub.add_parser("demo", parents=[common], help="Run the console demo")
    demo.add_argument("--scenario", default=None)
    demo.set_defaults(handler=_run_demo)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.handler(args)
    except (InvalidDateFormat, InvalidTimeFormat, InvalidRole) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
