"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidPlanInput(DomainException):
    """Payment plan parameters are missing, zero, or malformed"""

    pass


class InvalidTransition(DomainException):
    """Installment status change attempted from a non-pending state"""

    def __init__(self, installment_id, current_status: str, target_status: str):
        self.installment_id = installment_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Installment {installment_id} cannot move from {current_status} to {target_status}"
        )


class NotFound(DomainException):
    """Referenced case or installment does not exist"""

    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class RecommendationServiceError(DomainException):
    """Recommendation service returned an error, timed out, or sent junk"""

    pass
