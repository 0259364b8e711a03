from clinic_booking.scheduling.aggregator import LevelThresholds, aggregate_week, summarize_day
from clinic_booking.scheduling.calculator import AvailabilityCalculator, SlotComputation
from clinic_booking.scheduling.service import AvailabilityService

__all__ = [
    "AvailabilityService",
    "AvailabilityCalculator",
    "SlotComputation",
    "LevelThresholds",
    "aggregate_week",
    "summarize_day",
]
