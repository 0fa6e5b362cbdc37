"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRecurrenceDefinition(DomainException, ValueError):
    """Recurrence rule has contradictory or missing fields"""

    pass


class InvalidWindowError(DomainException, ValueError):
    """Query window end precedes its start"""

    pass


class AdapterFetchError(DomainException):
    """A source accessor failed; carries the source type so the merge can continue"""

    def __init__(self, source_type: str, message: str):
        super().__init__(message)
        self.source_type = source_type
