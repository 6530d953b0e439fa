"""
Custom exceptions for the Visa Case service.
"""

class BaseVisaCaseError(Exception):
    """Base class for exceptions in this module."""
    pass

class VisaCaseNotFoundError(BaseVisaCaseError):
    """Raised when a visa case is not found."""
    def __init__(self, case_id: str):
        self.case_id = case_id
        super().__init__(f"Visa case '{case_id}' not found.")

class DocumentAlertNotFoundError(BaseVisaCaseError):
    """Raised when a document alert is not found."""
    def __init__(self, alert_id: str):
        self.alert_id = alert_id
        super().__init__(f"Document alert with ID '{alert_id}' not found.")

class InvalidTransitionError(BaseVisaCaseError):
    """Raised when a requested status change is not allowed from the current status."""
    def __init__(self, case_id: str, current_status: str, requested_status: str):
        self.case_id = case_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Cannot move case '{case_id}' from '{current_status}' to '{requested_status}'."
        )

class CaseLockedError(BaseVisaCaseError):
    """Raised when an edit is attempted on a locked case."""
    def __init__(self, case_id: str, attempted_action: str):
        self.case_id = case_id
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} for case '{case_id}': case is locked.")

class CaseAlreadyLockedError(BaseVisaCaseError):
    def __init__(self, case_id: str):
        self.case_id = case_id
        super().__init__(f"Case '{case_id}' is already locked.")

class CaseNotLockedError(BaseVisaCaseError):
    def __init__(self, case_id: str):
        self.case_id = case_id
        super().__init__(f"Case '{case_id}' is not locked.")

class IndexOutOfRangeError(BaseVisaCaseError):
    """Raised when a positional index into one of a case's embedded lists is stale or invalid."""
    def __init__(self, case_id: str, collection: str, index: int, length: int):
        self.case_id = case_id
        self.collection = collection
        self.index = index
        self.length = length
        super().__init__(
            f"Invalid {collection} index {index} for case '{case_id}' (list has {length} entries)."
        )

class AlertIndexOutOfRangeError(IndexOutOfRangeError):
    def __init__(self, case_id: str, index: int, length: int):
        super().__init__(case_id, "alert", index, length)

class ConcurrencyConflictError(BaseVisaCaseError):
    """Raised when a version conflict is detected during an update operation."""
    def __init__(self, aggregate_id: str, expected_version: int, actual_version: int):
        self.aggregate_id = aggregate_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Concurrency conflict for aggregate '{aggregate_id}'. "
            f"Expected version {expected_version}, but found {actual_version}."
        )

class PersistenceError(BaseVisaCaseError):
    """Raised when the document store is unavailable or rejects a write. Safe to retry."""
    pass
