"""Tests for the per-slot verdict state machine."""

import pytest

from clinic_booking.rules.slot_state import (
    InvalidTransitionError,
    SlotState,
    SlotStateMachine,
    SlotTrigger,
)


@pytest.fixture
def machine():
    return SlotStateMachine()


class TestInitialState:
    def test_starts_unknown(self, machine):
        assert machine.current_state == SlotState.UNKNOWN

    def test_not_terminal_at_start(self, machine):
        assert not machine.is_terminal()

    def test_every_trigger_valid_at_start(self, machine):
        assert set(machine.get_valid_triggers()) == set(SlotTrigger)


class TestResolution:
    @pytest.mark.parametrize("trigger, state", [
        (SlotTrigger.RULES_PASSED, SlotState.VALID),
        (SlotTrigger.DATE_IN_PAST, SlotState.BLOCKED_PAST_DATE),
        (SlotTrigger.LEAD_TIME_NOT_MET, SlotState.BLOCKED_ADVANCE_NOTICE),
        (SlotTrigger.SLOT_OCCUPIED, SlotState.BLOCKED_CONFLICT),
        (SlotTrigger.DOCTOR_TIME_OFF, SlotState.BLOCKED_TIME_OFF),
        (SlotTrigger.BEYOND_HORIZON, SlotState.BLOCKED_BOOKING_HORIZON),
        (SlotTrigger.WEEKEND_CLOSED, SlotState.BLOCKED_WEEKEND),
        (SlotTrigger.OUTSIDE_WINDOW, SlotState.BLOCKED_OUTSIDE_WINDOW),
    ])
    def test_trigger_resolves(self, machine, trigger, state):
        assert machine.transition(trigger) == state
        assert machine.is_terminal()

    def test_resolved_slot_cannot_change(self, machine):
        machine.transition(SlotTrigger.RULES_PASSED)
        with pytest.raises(InvalidTransitionError, match="valid"):
            machine.transition(SlotTrigger.SLOT_OCCUPIED)
        assert machine.current_state == SlotState.VALID

    def test_no_triggers_after_resolution(self, machine):
        machine.transition(SlotTrigger.DATE_IN_PAST)
        assert machine.get_valid_triggers() == []
