"""
Finite state machine for a single slot verdict.

Every candidate slot starts in UNKNOWN and resolves exactly once into VALID
or one of the blocked states. Resolved states are terminal: a second
transition is rejected, so a verdict can never be silently overwritten by a
later, different check.

Usage:
    sm = SlotStateMachine()
    sm.transition(SlotTrigger.LEAD_TIME_NOT_MET)
    assert sm.current_state == SlotState.BLOCKED_ADVANCE_NOTICE
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class SlotState(str, Enum):
    """All possible states of a slot verdict."""
    UNKNOWN = "unknown"
    VALID = "valid"
    BLOCKED_PAST_DATE = "blocked_past_date"
    BLOCKED_ADVANCE_NOTICE = "blocked_advance_notice"
    BLOCKED_CONFLICT = "blocked_conflict"
    BLOCKED_TIME_OFF = "blocked_time_off"
    BLOCKED_BOOKING_HORIZON = "blocked_booking_horizon"
    BLOCKED_WEEKEND = "blocked_weekend"
    BLOCKED_OUTSIDE_WINDOW = "blocked_outside_window"


class SlotTrigger(str, Enum):
    """Rule outcomes that resolve a slot."""
    RULES_PASSED = "rules_passed"
    DATE_IN_PAST = "date_in_past"
    LEAD_TIME_NOT_MET = "lead_time_not_met"
    SLOT_OCCUPIED = "slot_occupied"
    DOCTOR_TIME_OFF = "doctor_time_off"
    BEYOND_HORIZON = "beyond_horizon"
    WEEKEND_CLOSED = "weekend_closed"
    OUTSIDE_WINDOW = "outside_window"


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_state: SlotState
    to_state: SlotState
    trigger: SlotTrigger


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class SlotStateMachine:
    """Resolves one candidate slot from UNKNOWN into a terminal verdict."""

    TRANSITIONS: list[Transition] = [
        Transition(SlotState.UNKNOWN, SlotState.VALID, SlotTrigger.RULES_PASSED),
        Transition(SlotState.UNKNOWN, SlotState.BLOCKED_PAST_DATE, SlotTrigger.DATE_IN_PAST),
        Transition(SlotState.UNKNOWN, SlotState.BLOCKED_ADVANCE_NOTICE,
                   SlotTrigger.LEAD_TIME_NOT_MET),
        Transition(SlotState.UNKNOWN, SlotState.BLOCKED_CONFLICT, SlotTrigger.SLOT_OCCUPIED),
        Transition(SlotState.UNKNOWN, SlotState.BLOCKED_TIME_OFF, SlotTrigger.DOCTOR_TIME_OFF),
        Transition(SlotState.UNKNOWN, SlotState.BLOCKED_BOOKING_HORIZON,
                   SlotTrigger.BEYOND_HORIZON),
        Transition(SlotState.UNKNOWN, SlotState.BLOCKED_WEEKEND, SlotTrigger.WEEKEND_CLOSED),
        Transition(SlotState.UNKNOWN, SlotState.BLOCKED_OUTSIDE_WINDOW,
                   SlotTrigger.OUTSIDE_WINDOW),
    ]

    def __init__(self) -> None:
        self._current_state = SlotState.UNKNOWN

    @property
    def current_state(self) -> SlotState:
        return self._current_state

    def transition(self, trigger: SlotTrigger) -> SlotState:
        """
        Resolve the slot.

        Raises:
            InvalidTransitionError: If the slot was already resolved.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                self._current_state = t.to_state
                logger.debug("Slot resolved: %s (trigger: %s)", t.to_state.value, trigger.value)
                return self._current_state

        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: "
            f"{[t.value for t in self.get_valid_triggers()]}"
        )

    def get_valid_triggers(self) -> list[SlotTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def is_terminal(self) -> bool:
        return self._current_state != SlotState.UNKNOWN
