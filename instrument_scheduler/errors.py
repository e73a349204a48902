# instrument_scheduler/errors.py
from typing import Dict, List, Optional

from fastapi import status


class SchedulerError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    @property
    def errors(self) -> Optional[Dict[str, List[str]]]:
        if self.field is None:
            return None
        return {self.field: [self.message]}


class InvalidRange(SchedulerError):
    default_message = "Invalid reservation data"


class NonContiguousSelection(InvalidRange):
    default_message = "Only consecutive time slots can be selected"


class SelectionTooLarge(InvalidRange):
    default_message = "Selection is too large"


class SlotAlreadyReserved(SchedulerError):
    default_message = "Time slot already reserved"


class NotApproved(SchedulerError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "User not approved for reservations"


class Forbidden(SchedulerError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized to perform this action"


class NotFound(SchedulerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"
