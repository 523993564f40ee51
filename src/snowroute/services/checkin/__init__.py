"""Check-in services."""

from .service import CheckInService, WorkLogDetails, get_check_in_service
from .state_machine import CheckInStateMachine, format_duration

__all__ = [
    "CheckInService",
    "CheckInStateMachine",
    "WorkLogDetails",
    "format_duration",
    "get_check_in_service",
]
