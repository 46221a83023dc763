"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ExtractionError(DomainException):
    """A mandatory field could not be extracted from the message"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class RuleSourceError(DomainException):
    """Merchant rule source returned an error or is unavailable"""

    pass


class ClassifierError(DomainException):
    """Fallback classifier call failed"""

    pass


class StoreWriteError(DomainException):
    """Transaction could not be appended to the external store"""

    pass
