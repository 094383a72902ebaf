# app/exceptions.py
"""Domain errors raised by the registry and the progress store.

Each error carries a machine-readable ``kind`` and the HTTP status the API
layer answers with.
"""


class HabitTrackerError(Exception):
    kind = "HabitTrackerError"
    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind)
        self.detail = detail or self.kind


class NotFound(HabitTrackerError):
    kind = "NotFound"
    status_code = 404


class HabitNotFound(NotFound):
    kind = "HabitNotFound"


class DuplicateName(HabitTrackerError):
    kind = "DuplicateName"
    status_code = 409


class InvalidTarget(HabitTrackerError):
    kind = "InvalidTarget"
    status_code = 422


class ConcurrencyConflict(HabitTrackerError):
    kind = "ConcurrencyConflict"
    status_code = 409


class PersistenceUnavailable(HabitTrackerError):
    kind = "PersistenceUnavailable"
    status_code = 500


class InvalidDate(InvalidTarget):
    kind = "InvalidDate"
