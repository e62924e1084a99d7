"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Borrower, loan or application does not exist"""

    pass


class InvalidInputError(DomainException):
    """Amounts or required inputs are missing, non-finite or out of range"""

    pass


class CreditLimitExceededError(InvalidInputError):
    """Requested amount is above the borrower's available credit"""

    def __init__(self, requested_amount: float, available_credit: float):
        super().__init__(
            f"Requested amount exceeds available credit. Available credit: {available_credit}"
        )
        self.requested_amount = requested_amount
        self.available_credit = available_credit


class TransactionFailureError(DomainException):
    """Database failure inside a disbursement or payment; nothing was committed"""

    pass


class ConcurrentModificationError(TransactionFailureError):
    """Loan row changed underneath us; the whole operation may be retried"""

    pass
