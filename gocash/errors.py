"""
Error Hierarchy Module

Domain exceptions raised by the schedule, store, access control and
advisory components. Value-style errors also subclass ValueError and lookup
errors subclass LookupError so callers can catch them generically.
"""


class GoCashError(Exception):
    """Base exception for all GoCash errors"""


class InvalidLoanTerms(GoCashError, ValueError):
    """Raised when loan terms cannot produce a schedule"""


class InstallmentAlreadyPaid(GoCashError, ValueError):
    """Raised when confirming a payment on a settled installment"""


class UnknownEntity(GoCashError, LookupError):
    """Raised when a referenced identifier is not in its collection"""

    entity_type = "entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type.capitalize()} {entity_id} not found")


class UnknownUser(UnknownEntity):
    entity_type = "user"


class UnknownLoan(UnknownEntity):
    entity_type = "loan"


class UnknownInstallment(UnknownEntity):
    entity_type = "installment"


class AuthenticationError(GoCashError):
    """Raised when credentials or tokens are rejected"""


class PermissionDenied(GoCashError):
    """Raised when a role may not perform an operation"""


class AdvisoryUnavailable(GoCashError):
    """Raised when the AI advisory service cannot produce text"""
