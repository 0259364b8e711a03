"""
Offline console demo - renders a doctor's week and walks through booking
scenarios against the seeded in-memory clinic.

Uses the real policy, calculator, aggregator and validator with a pinned
clock, so the output is the same on every run and on every host timezone.

Usage:
    python console_demo.py
    python console_demo.py --scenario admin
    python console_demo.py --scenario stale --week-start 2025-03-17
"""

import argparse
import sys
from typing import Callable, Optional

from clinic_booking.dates import CalendarDate, add_days, parse, start_of_week
from clinic_booking.rules.policy import Role
from clinic_booking.scheduling.service import AvailabilityService
from clinic_booking.schemas.availability_schema import AvailabilityLevel, DayAvailability
from clinic_booking.tools.clock import FixedClock
from clinic_booking.tools.demo_data import DEMO_ORGANIZATION, build_demo_store, demo_now

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEFAULT_WEEK_START = "2025-03-17"
DOCTOR = "dr-garcia"

LEVEL_COLOURS: dict[AvailabilityLevel, str] = {
    AvailabilityLevel.NONE: RED,
    AvailabilityLevel.LOW: YELLOW,
    AvailabilityLevel.MEDIUM: BLUE,
    AvailabilityLevel.HIGH: GREEN,
}


class ConsoleCalendar:
    """Drives one demo clinic from the terminal."""

    def __init__(self, week_start: CalendarDate) -> None:
        self.week_start = week_start
        self._reset()

    def _reset(self) -> None:
        week_start = self.week_start
        self.store = build_demo_store(week_start)
        self.clock = FixedClock(demo_now(week_start))
        self.service = AvailabilityService(self.store, clock=self.clock)

    def narrate(self, text: str) -> None:
        print(f"{BOLD}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def render_day(self, day: DayAvailability) -> None:
        colour = LEVEL_COLOURS[day.availability_level]
        label = f"{day.date} {day.day_name:<10}"
        level = f"{colour}{day.availability_level.value:<6}{RESET}"
        if day.is_blocked:
            print(f"  {label} {level} {DIM}{day.block_reason.value}: {day.block_message}{RESET}")
            return
        times = " ".join(slot.time.isoformat() for slot in day.slots)
        print(f"  {label} {level} {day.slots_count:>2}  {times}")

    def show_week(self, role: Role) -> None:
        now = self.clock.now()
        self.system_log(f"now={now:%Y-%m-%d %H:%M} role={role.value} doctor={DOCTOR}")
        week = self.service.compute_week_availability(
            DEMO_ORGANIZATION, DOCTOR, self.week_start, role,
        )
        for day in week:
            self.render_day(day)

    def submit(self, day: CalendarDate, time: str, role: Role) -> None:
        result = self.service.book_appointment(
            DEMO_ORGANIZATION, DOCTOR, day, time, role, patient_id="pat-demo",
        )
        colour = GREEN if result.success else RED
        print(f"{colour}  Booking {day} {time} as {role.value}: {result.message}{RESET}")

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def scenario_patient(self) -> None:
        self.narrate("A patient at 08:00 on Monday: today is inside the 24h lead time.")
        self.show_week(Role.PATIENT)

    def scenario_admin(self) -> None:
        self.narrate("An admin at 08:31 on Monday: same-day slots stay bookable.")
        self.clock.set(demo_now(self.week_start, 8, 31))
        self.show_week(Role.ADMIN)

    def scenario_past(self) -> None:
        self.narrate("Wednesday 10:00: Monday and Tuesday are in the past for every role.")
        self.clock.set(demo_now(add_days(self.week_start, 2), 10, 0))
        for role in (Role.PATIENT, Role.SUPERADMIN):
            self.show_week(role)

    def scenario_conflict(self) -> None:
        tuesday = add_days(self.week_start, 1)
        self.narrate("Tuesday from 10:00 is fully booked; 09:30 is free until someone takes it.")
        self.show_week(Role.PATIENT)
        self.submit(tuesday, "10:00", Role.PATIENT)
        self.submit(tuesday, "09:30", Role.PATIENT)
        self.submit(tuesday, "09:30", Role.ADMIN)
        self.show_week(Role.PATIENT)

    def scenario_stale(self) -> None:
        tuesday = add_days(self.week_start, 1)
        self.narrate("The calendar is opened at 08:00, the form submitted at 09:30.")
        verdict = self.service.validate_candidate(
            tuesday, "09:00", Role.PATIENT,
            organization_id=DEMO_ORGANIZATION, doctor_id=DOCTOR,
        )
        self.system_log(f"08:00 check: valid={verdict.is_valid}")
        self.clock.advance(minutes=90)
        verdict = self.service.validate_candidate(
            tuesday, "09:00", Role.PATIENT,
            organization_id=DEMO_ORGANIZATION, doctor_id=DOCTOR,
        )
        self.system_log(
            f"09:30 check: valid={verdict.is_valid} reason={verdict.reason.value} "
            f"next={verdict.next_valid_time}"
        )
        self.submit(tuesday, "09:00", Role.PATIENT)

    SCENARIOS: dict[str, str] = {
        "patient": "scenario_patient",
        "admin": "scenario_admin",
        "past": "scenario_past",
        "conflict": "scenario_conflict",
        "stale": "scenario_stale",
    }

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        method_name = self.SCENARIOS.get(scenario)
        if method_name is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  CLINIC BOOKING ENGINE - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Organization: {DEMO_ORGANIZATION}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

        step: Callable[[], None] = getattr(self, method_name)
        step()

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        for scenario in self.SCENARIOS:
            self._reset()
            self.run_scenario(scenario)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Clinic booking engine console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleCalendar.SCENARIOS),
        help="Run one pre-scripted scenario instead of all of them",
    )
    parser.add_argument(
        "--week-start",
        default=DEFAULT_WEEK_START,
        help="Any date in the demo week (YYYY-MM-DD); snapped to its Monday",
    )
    args = parser.parse_args(argv)

    calendar = ConsoleCalendar(start_of_week(parse(args.week_start)))
    if args.scenario:
        calendar.run_scenario(args.scenario)
    else:
        calendar.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
